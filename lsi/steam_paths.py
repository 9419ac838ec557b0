import os
import pwd
import logging
from pathlib import Path
from typing import Optional, List

from lsi.vdf_errors import VdfParseError
from lsi.vdf_node import VdfNode
from lsi.vdf_parser import VdfParser

logger = logging.getLogger(__name__)

# Older clients write "LibraryFolders", newer ones "libraryfolders"
LIBRARY_SECTION_NAMES = ("LibraryFolders", "libraryfolders")


class SteamPathDetector:
    """
    Detects the Steam installation and every library folder configured in it.
    """

    @staticmethod
    def get_home_dir() -> Path:
        home = os.environ.get("HOME")
        if home:
            return Path(home)
        return Path(pwd.getpwuid(os.getuid()).pw_dir)

    @staticmethod
    def get_user_config_dir() -> Path:
        """
        Returns $XDG_CONFIG_HOME if set, otherwise ~/.config.
        Symlinks are resolved when the directory exists.
        """
        xdg_config = os.environ.get("XDG_CONFIG_HOME")
        if xdg_config:
            path = Path(xdg_config)
        else:
            path = SteamPathDetector.get_home_dir() / ".config"
        if path.exists():
            return path.resolve()
        return path

    @staticmethod
    def get_steam_install_path(settings_path: str = "") -> Path:
        """
        Returns the Steam installation path.
        Priority:
        1. settings_path (if valid)
        2. ~/.steam/root, following its symlink
        3. $XDG_DATA_HOME/Steam or ~/.local/share/Steam, even if missing
        """
        if settings_path:
            path = Path(settings_path)
            if path.exists() and path.is_dir():
                return path

        home = SteamPathDetector.get_home_dir()
        candidate = home / ".steam" / "root"
        if candidate.exists():
            return candidate.resolve()

        xdg_data = os.environ.get("XDG_DATA_HOME")
        if xdg_data:
            return Path(xdg_data) / "Steam"
        return home / ".local" / "share" / "Steam"

    @staticmethod
    def get_library_paths(steam_root: Optional[Path] = None) -> List[Path]:
        """
        Returns the Steam root followed by every extra library folder listed
        in steamapps/libraryfolders.vdf.

        Library entries are the numerically keyed children of the
        LibraryFolders section, either plain "1" "/path" pairs or, in newer
        files, "1" { "path" "/path" ... } sections.
        """
        if steam_root is None:
            steam_root = SteamPathDetector.get_steam_install_path()

        paths = [steam_root]
        library_vdf_path = steam_root / "steamapps" / "libraryfolders.vdf"
        if not library_vdf_path.exists():
            return paths

        try:
            document = VdfParser.load(str(library_vdf_path))
        except (OSError, VdfParseError) as e:
            logger.warning(f"Failed to read library folders from {library_vdf_path}: {e}")
            return paths

        with document:
            section = None
            for name in LIBRARY_SECTION_NAMES:
                section = document.get(name)
                if section is not None:
                    break
            if section is None:
                return paths

            for entry in section.children():
                library = SteamPathDetector._library_entry_path(entry)
                if library is None or library in paths:
                    continue
                logger.debug(f"vdf: discovered LibraryFolders: {library}")
                paths.append(library)

        return paths

    @staticmethod
    def _library_entry_path(entry: VdfNode) -> Optional[Path]:
        if not entry.key or not entry.key.isdigit() or not entry.key.isascii():
            return None
        if entry.is_leaf:
            return Path(entry.value) if entry.value else None
        path_node = entry.child("path")
        if path_node is not None and path_node.value:
            return Path(path_node.value)
        return None
