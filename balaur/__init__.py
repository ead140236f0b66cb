"""
Balaur turns a long-running callable into a pre-forking *nix daemon with
start, stop and restart commands.

Typical embedded use:

    from balaur import Supervisor, load_config

    Supervisor(serve, load_config()).process_args()
"""

from balaur.settings import VERSION as __version__
from balaur.local.config import BalaurConfig, load_config
from balaur.local.supervisor import ExitCode, Supervisor

__all__ = ["BalaurConfig", "ExitCode", "Supervisor", "load_config", "__version__"]
