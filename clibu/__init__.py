__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'clibu'
__license__ = 'MIT'
__version__ = "0.1.0"

from .schema import *
from .config import *
from .graph import *
from .parser import *
from .validate import *
from .context import *
from .faults import *
from .help import *
from .hooks import *
from .loader import *
from .runtime import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

version_info = VersionInfo(0, 1, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of every submodule
__all__ += schema.__all__  # type: ignore[attr-defined]
__all__ += config.__all__  # type: ignore[attr-defined]
__all__ += graph.__all__  # type: ignore[attr-defined]
__all__ += parser.__all__  # type: ignore[attr-defined]
__all__ += validate.__all__  # type: ignore[attr-defined]
__all__ += context.__all__  # type: ignore[attr-defined]
__all__ += faults.__all__  # type: ignore[attr-defined]
__all__ += help.__all__  # type: ignore[attr-defined]
__all__ += hooks.__all__  # type: ignore[attr-defined]
__all__ += loader.__all__  # type: ignore[attr-defined]
__all__ += runtime.__all__  # type: ignore[attr-defined]
