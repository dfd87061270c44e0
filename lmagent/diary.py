"""
The diary of a run: the ordered record of the tool calls executed by
the agent and their results. A diary lives as long as one executor
run; its steps are replayed to the model as the scratchpad, and saved
to memory when the run completes.
"""

from abc import ABC, abstractmethod

from lmagent.schemas import AgentStep


class Diary(ABC):
    """Abstract interface of the run transcript."""

    @abstractmethod
    def push_step(self, step: AgentStep) -> None:
        pass

    @abstractmethod
    def get_steps(self) -> list[AgentStep]:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self.get_steps())


class SimpleDiary(Diary):
    """Keeps the steps in a list."""

    def __init__(self) -> None:
        self.steps: list[AgentStep] = []

    def push_step(self, step: AgentStep) -> None:
        self.steps.append(step)

    def get_steps(self) -> list[AgentStep]:
        return list(self.steps)

    def clear(self) -> None:
        self.steps.clear()
