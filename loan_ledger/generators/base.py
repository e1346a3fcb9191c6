"""Shared setup for sample data generators."""

from __future__ import annotations

import random
from abc import ABC
from datetime import datetime, timedelta

from faker import Faker


class BaseGenerator(ABC):
    """Faker plus a private random stream, both seeded together.

    Parameters
    ----------
    seed : int | None
        Seed for reproducible output. Loan ids are only reproducible when
        the ledger takes them from ``loan_id``.
    locale : str
        Faker locale, ``en_IN`` to match rupee-denominated amounts.
    """

    def __init__(self, seed: int | None = None, locale: str = "en_IN") -> None:
        self.fake = Faker(locale)
        self.rng = random.Random(seed)
        if seed is not None:
            self.fake.seed_instance(seed)

    def loan_id(self) -> str:
        """A loan id drawn from the seeded Faker, for ``LoanLedger(id_factory=...)``."""
        return f"loan_{self.fake.uuid4().replace('-', '')}"

    def chance(self, probability: float) -> bool:
        return self.rng.random() < probability

    def days_before(self, moment: datetime, low: int, high: int) -> datetime:
        """A time between ``low`` and ``high`` whole days before ``moment``."""
        return moment - timedelta(days=self.rng.randint(low, high))
