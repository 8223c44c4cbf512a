"""Process-wide SonarQube instance configuration.

The store is owned by whoever starts the host (the admin service or the
CLI) and is passed explicitly into every build step.  Readers take an
immutable snapshot; administrators replace the whole list at once, so a
build that already resolved its instance is unaffected by later edits.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from src.quality_gates.exceptions import StoreError
from src.shared.models.quality_gates import InstanceConfig
from src.shared.utils import atomic_write_json, load_json

logger = logging.getLogger(__name__)


def select_default(instances: Sequence[InstanceConfig]) -> InstanceConfig | None:
    """Pick the designated default out of *instances*.

    Order of preference: the first instance flagged ``is_default``, then the
    first unnamed instance, then the first instance in the list.
    """
    if not instances:
        return None
    for instance in instances:
        if instance.is_default:
            return instance
    for instance in instances:
        if not instance.name:
            return instance
    return instances[0]


def duplicate_names(instances: Iterable[InstanceConfig]) -> list[str]:
    """Return the non-empty instance names that occur more than once."""
    counts = Counter(i.name for i in instances if i.name)
    return sorted(name for name, count in counts.items() if count > 1)


class GlobalConfigStore:
    """Ordered list of configured SonarQube instances.

    Usage
    -----
    ::

        store = GlobalConfigStore.load("data/instances.json")
        store.replace([InstanceConfig(name="main", server_url="...")])
    """

    def __init__(
        self,
        instances: Iterable[InstanceConfig] = (),
        path: Path | str | None = None,
    ) -> None:
        self._path = Path(path) if path is not None else None
        self._instances: tuple[InstanceConfig, ...] = ()
        self._set(instances)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path | None:
        return self._path

    def snapshot(self) -> tuple[InstanceConfig, ...]:
        """Return the current instance list; later replacements do not affect it."""
        return self._instances

    @property
    def default_instance(self) -> InstanceConfig | None:
        return select_default(self._instances)

    def __len__(self) -> int:
        return len(self._instances)

    def __iter__(self) -> Iterator[InstanceConfig]:
        return iter(self._instances)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def replace(self, instances: Iterable[InstanceConfig], persist: bool = True) -> None:
        """Replace the full instance list, last write wins.

        Args:
            instances: The new instance list, in resolution order.
            persist: Also write the list to :attr:`path` when one is set.
        """
        self._set(instances)
        logger.info("Instance configuration replaced: %d instance(s)", len(self._instances))
        if persist and self._path is not None:
            self.save()

    def save(self) -> None:
        """Write the instance list to :attr:`path` atomically."""
        if self._path is None:
            raise StoreError("Store has no file path to save to")
        atomic_write_json(
            self._path,
            {"instances": [i.model_dump() for i in self._instances]},
        )

    @classmethod
    def load(cls, path: Path | str) -> GlobalConfigStore:
        """Load a store from a JSON file.

        A missing file yields an empty store bound to *path*.

        Raises:
            StoreError: If the file exists but is not a valid instance list.
        """
        path = Path(path)
        if not path.exists():
            logger.info("No instance configuration at %s, starting empty", path)
            return cls(path=path)

        data = load_json(path)
        if isinstance(data, dict):
            raw = data.get("instances", [])
        elif isinstance(data, list):
            raw = data
        else:
            raise StoreError(f"Invalid instance configuration file: {path}")
        if not isinstance(raw, list):
            raise StoreError(f"'instances' must be a list in {path}")

        try:
            instances = [InstanceConfig.model_validate(item) for item in raw]
        except PydanticValidationError as exc:
            raise StoreError(f"Invalid instance entry in {path}: {exc}") from exc
        return cls(instances, path=path)

    def _set(self, instances: Iterable[InstanceConfig]) -> None:
        new_instances = tuple(instances)
        duplicates = duplicate_names(new_instances)
        if duplicates:
            logger.warning(
                "Duplicate SonarQube instance names %s; the first entry of each wins",
                ", ".join(repr(n) for n in duplicates),
            )
        self._instances = new_instances
