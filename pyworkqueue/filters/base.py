# pyworkqueue/filters/base.py
from abc import ABC

from pyworkqueue.server.context import ElectStateContext


class JobFilter(ABC):
    """Hook run by the job runner before the next state is applied."""

    def on_state_election(self, elect_state_context: ElectStateContext) -> None:
        pass
