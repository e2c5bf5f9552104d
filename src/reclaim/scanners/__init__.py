"""Built-in category scanners."""

from reclaim.scanners.downloads import DownloadsScanner
from reclaim.scanners.duplicates import DuplicatesScanner
from reclaim.scanners.large_files import LargeFilesScanner
from reclaim.scanners.node_modules import ProjectArtifactsScanner
from reclaim.scanners.system_logs import SystemLogsScanner
from reclaim.scanners.temp_files import TempFilesScanner
from reclaim.scanners.trash import TrashScanner
from reclaim.scanners.user_cache import UserCacheScanner

# One scanner class per CategoryId, in display order.
BUILTIN_SCANNERS = (
    UserCacheScanner,
    SystemLogsScanner,
    TempFilesScanner,
    TrashScanner,
    DownloadsScanner,
    LargeFilesScanner,
    ProjectArtifactsScanner,
    DuplicatesScanner,
)

__all__ = [
    "BUILTIN_SCANNERS",
    "DownloadsScanner",
    "DuplicatesScanner",
    "LargeFilesScanner",
    "ProjectArtifactsScanner",
    "SystemLogsScanner",
    "TempFilesScanner",
    "TrashScanner",
    "UserCacheScanner",
]
