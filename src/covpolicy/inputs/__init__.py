from covpolicy.inputs.annotations import scan_annotations
from covpolicy.inputs.cobertura import read_coverage
from covpolicy.inputs.config import find_config, load_config
from covpolicy.inputs.history import HistoryStore

__all__ = ["HistoryStore", "find_config", "load_config", "read_coverage", "scan_annotations"]
