import datetime
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional


@dataclass
class Timer:
    """
    Wall clock timer for the long running build stages. Started on construction, stopped explicitly.
    """

    label: str
    start: datetime.datetime = field(default_factory=datetime.datetime.now)
    end: Optional[datetime.datetime] = None

    def stop(self) -> timedelta:
        self.end = datetime.datetime.now()
        return self.delta()

    def delta(self) -> timedelta:
        return (self.end or datetime.datetime.now()) - self.start

    def readout(self) -> str:
        return f"Time taken for {self.label}: {self.delta()}"
