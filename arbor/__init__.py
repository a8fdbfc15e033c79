__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'arbor'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .arguments import *
from .commands import *
from .faults import *
from .flags import *
from .help import *
from .options import *
from .renderers import *
from .types import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the argument grammar
__all__ += arguments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the commands
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the flag tokenizer
__all__ += flags.__all__  # type: ignore[attr-defined]
# Load the exposed API of the help command
__all__ += help.__all__  # type: ignore[attr-defined]
# Load the exposed API of the option records
__all__ += options.__all__  # type: ignore[attr-defined]
# Load the exposed API of the help renderer
__all__ += renderers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the value types
__all__ += types.__all__  # type: ignore[attr-defined]
