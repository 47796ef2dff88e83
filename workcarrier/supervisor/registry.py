import time
from typing import Dict, Iterator, List, Optional


class ProcessRegistry:
    """
    Tracks the worker processes forked by a pool parent.

    Maps each child PID to the time it was spawned. Only the process that
    forked the children mutates it; forked children get a private copy they
    never read.
    """

    def __init__(self) -> None:
        self._spawned: Dict[int, float] = {}

    def add(self, pid: int) -> None:
        """Records a freshly forked child with the current timestamp."""
        self._spawned[pid] = time.time()

    def remove(self, pid: int) -> Optional[float]:
        """
        Forgets a reaped child.

        :return: The spawn timestamp, or None if the PID was not registered.
        """
        return self._spawned.pop(pid, None)

    def spawned_at(self, pid: int) -> Optional[float]:
        return self._spawned.get(pid)

    def pids(self) -> List[int]:
        """Returns a snapshot of the registered PIDs."""
        return list(self._spawned)

    def clear(self) -> None:
        self._spawned.clear()

    def __len__(self) -> int:
        return len(self._spawned)

    def __contains__(self, pid: object) -> bool:
        return pid in self._spawned

    def __iter__(self) -> Iterator[int]:
        return iter(self.pids())

    def __repr__(self) -> str:
        return f"ProcessRegistry({sorted(self._spawned)})"
