import platform
import os
import stat
import logging
from pathlib import Path

from . import config

logger = logging.getLogger(__name__)

if platform.system() == "Windows":
    try:
        import win32security
        import win32api
        import win32con
        import win32file
        WINDOWS_SECURITY_AVAILABLE = True
    except ImportError:
        logger.warning("pywin32 not fully installed, cannot set Windows file permissions securely.")
        WINDOWS_SECURITY_AVAILABLE = False
else:
    WINDOWS_SECURITY_AVAILABLE = False


def _set_windows_file_permissions(filepath: str) -> bool:
    """
    Sets restrictive permissions on a file for Windows, granting full control
    only to the current user and removing access for others.
    """
    if not WINDOWS_SECURITY_AVAILABLE:
        logger.warning(f"Skipping Windows file permission setting for {filepath}: pywin32 not available.")
        return False

    current_user_name = win32api.GetUserName()
    current_user_sid, _, _ = win32security.LookupAccountName(None, current_user_name)

    dacl = win32security.ACL()
    dacl.AddAccessAllowedAce(
        win32security.ACL_REVISION,
        win32con.GENERIC_READ | win32con.GENERIC_WRITE | win32con.GENERIC_EXECUTE,
        current_user_sid
    )

    try:
        file_handle = win32file.CreateFile(
            filepath,
            win32con.WRITE_DAC,
            win32file.FILE_SHARE_READ | win32file.FILE_SHARE_WRITE | win32file.FILE_SHARE_DELETE,
            None,
            win32con.OPEN_EXISTING,
            win32con.FILE_ATTRIBUTE_NORMAL,
            None
        )
    except win32api.error as e:
        logger.warning(f"Failed to open {filepath} to harden its permissions: {e}")
        return False

    try:
        win32security.SetSecurityInfo(
            file_handle,
            win32security.SE_FILE_OBJECT,
            win32security.DACL_SECURITY_INFORMATION | win32security.PROTECTED_DACL_SECURITY_INFORMATION,
            None,
            None,
            dacl,
            None
        )
        logger.info(f"Set restrictive permissions for {filepath} on Windows.")
    except win32api.error as e:
        # Access is denied: the file is written but could not be hardened.
        logger.warning(f"Failed to set secure Windows file permissions for {filepath}: {e}")
        return False
    finally:
        win32file.CloseHandle(file_handle)
    return True


def set_private_permissions(path: Path, mode: int = config.FILE_MODE) -> bool:
    """
    Restrict a file or directory to its owner.
    Returns False when the platform could not apply the restriction.
    """
    if platform.system() == 'Windows':
        return _set_windows_file_permissions(str(path))
    try:
        os.chmod(path, mode)
    except OSError as e:
        logger.warning(f"Failed to set permissions {oct(mode)} on {path}: {e}")
        return False
    return True


def ensure_private_dir(path: Path) -> None:
    """Create ``path`` with owner-only permissions, tightening an existing directory."""
    path = Path(path)
    if path.is_dir():
        if platform.system() != 'Windows' and stat.S_IMODE(path.stat().st_mode) & 0o077:
            logger.warning(f"Vault directory {path} is accessible to other users; restricting it")
            set_private_permissions(path, config.DIR_MODE)
        return
    path.mkdir(parents=True, mode=config.DIR_MODE)
    # mkdir's mode is filtered through the umask.
    set_private_permissions(path, config.DIR_MODE)
    logger.info(f"Created vault directory {path}")


def create_private_file(path: Path) -> None:
    """Create an empty file readable and writable by its owner only, if absent."""
    path = Path(path)
    if path.exists():
        return
    fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_EXCL, stat.S_IRUSR | stat.S_IWUSR)
    os.close(fd)
    if not set_private_permissions(path):
        logger.warning(f"Failed to set secure file permissions for {path}. This might indicate a permission issue.")


def open_private_file(path: Path, mode: str = 'w', **kwargs):
    """
    Open ``path`` for writing, truncated and restricted to its owner before
    anything is written to it.

    Raises:
        PermissionError: If the file could not be restricted to its owner
    """
    fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC | getattr(os, 'O_BINARY', 0), config.FILE_MODE)
    if not set_private_permissions(path):
        os.close(fd)
        raise PermissionError(f"Could not restrict {path} to its owner")
    return os.fdopen(fd, mode, **kwargs)
