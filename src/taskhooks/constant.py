from __future__ import annotations

import importlib.metadata

NAME = importlib.metadata.metadata("taskhooks")["Name"]
VERSION = importlib.metadata.version("taskhooks")
