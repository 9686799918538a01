# modweaver/app/paths.py
from __future__ import annotations
import os
from pathlib import Path



# Root directory structure constants
PACKAGE_DIR = Path(__file__).resolve().parent.parent # modweaver/
ROOT_DIR = PACKAGE_DIR.parent                        # repository root
USER_DIR = Path(os.path.expanduser("~/.modweaver"))  # per-user settings and logs
