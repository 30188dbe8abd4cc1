"""
Contract Store

Read-only loader for Feature and Module records kept as JSON or YAML files
under a contracts directory:

    .vibeops/
        features/FEAT-001.json
        modules/MOD-001.yaml

Usage:
    from feature_graph.store import ContractStore

    store = ContractStore(Path(".vibeops"))
    features = store.load_features()
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from feature_graph.exceptions import ContractLoadError
from feature_graph.logging_config import get_logger
from feature_graph.schemas import Feature, Module

logger = get_logger(__name__)

CONTRACT_SUFFIXES = (".json", ".yaml", ".yml")
FEATURES_SUBDIR = "features"
MODULES_SUBDIR = "modules"

RecordT = TypeVar("RecordT", bound=BaseModel)


class ContractStore:
    """
    Loads contract records from disk.

    Every call reads the directory afresh; nothing is cached.
    """

    def __init__(self, contracts_dir: Union[str, Path]):
        self.contracts_dir = Path(contracts_dir)

    @property
    def features_dir(self) -> Path:
        return self.contracts_dir / FEATURES_SUBDIR

    @property
    def modules_dir(self) -> Path:
        return self.contracts_dir / MODULES_SUBDIR

    def load_features(self) -> List[Feature]:
        """
        Load every feature record, sorted by id.

        Raises:
            ContractLoadError: If the features directory is missing or a file
                cannot be parsed
        """
        if not self.features_dir.is_dir():
            raise ContractLoadError(
                f"Features directory not found: {self.features_dir}",
                path=self.features_dir,
                remediation="Pass --contracts-dir or set FEATURE_GRAPH_CONTRACTS_DIR",
            )
        return self._load_dir(self.features_dir, Feature)

    def load_modules(self) -> Optional[List[Module]]:
        """
        Load every module record, sorted by id. A missing modules directory
        yields None so module-level checks can be skipped.

        Raises:
            ContractLoadError: If a file cannot be parsed
        """
        if not self.modules_dir.is_dir():
            logger.info(f"No modules directory at {self.modules_dir}")
            return None
        return self._load_dir(self.modules_dir, Module)

    def _load_dir(self, directory: Path, model: Type[RecordT]) -> List[RecordT]:
        records = []

        for path in sorted(directory.iterdir()):
            if not path.is_file() or path.suffix.lower() not in CONTRACT_SUFFIXES:
                continue
            records.append(self._load_file(path, model))

        records.sort(key=lambda r: r.id)
        logger.info(f"Loaded {len(records)} {model.__name__.lower()} record(s) from {directory}")
        return records

    def _load_file(self, path: Path, model: Type[RecordT]) -> RecordT:
        data = read_contract_file(path)
        if not isinstance(data, dict):
            raise ContractLoadError(f"{path.name} must contain a single object", path=path)

        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Schema mismatch in {path}")
            raise ContractLoadError(
                f"{path.name} does not match the {model.__name__} schema",
                path=path,
                details=str(e),
            )


def read_contract_file(path: Path) -> Any:
    """Parse one JSON or YAML contract file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ContractLoadError(f"Cannot read {path.name}", path=path, details=str(e))

    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.warning(f"Unparseable contract file {path}")
        raise ContractLoadError(f"Cannot parse {path.name}", path=path, details=str(e))


def load_candidate(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a single JSON/YAML candidate description (used by the overlap command)."""
    path = Path(path)
    data = read_contract_file(path)
    if not isinstance(data, dict):
        raise ContractLoadError(f"{path.name} must contain a single object", path=path)
    return data
