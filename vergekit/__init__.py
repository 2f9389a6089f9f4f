__version__ = "0.1.0"

from . import config  # noqa: F401, I001
from . import errors  # noqa: F401
from . import models  # noqa: F401
from . import progress  # noqa: F401
from . import connection  # noqa: F401
from . import jobs  # noqa: F401
from . import files  # noqa: F401
from . import tasks  # noqa: F401
from . import vms  # noqa: F401
from . import nas  # noqa: F401
from . import transfers  # noqa: F401
from .connection import Connection, connect  # noqa: F401
