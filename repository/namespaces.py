# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "vocabvoice"

ITEMS: Final[str] = f"{ROOT}:items"
ITEM_INDEX: Final[str] = f"{ITEMS}:index"  # set of every stored item id
ASSETS: Final[str] = f"{ROOT}:assets"  # synthesized audio clips
