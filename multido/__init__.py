"""
multido – run multi‑statement SQL code through any DB‑API driver.
"""
from multido.batch import Batch
from multido.splitter import Splitter, split

__version__ = "0.2.0"

__all__ = ["Batch", "Splitter", "split", "__version__"]
