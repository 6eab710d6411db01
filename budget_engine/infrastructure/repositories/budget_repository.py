"""
Budget Item Repository - Contract for the persistence collaborator.

The import pipeline hands finished line items to an implementation of this
interface (typically a client for the budget REST API). Storage itself is
outside this package.
"""
from abc import ABC, abstractmethod
from typing import List, Sequence

from budget_engine.domain.entities import BudgetLineItem


class BudgetItemRepository(ABC):
    """
    Abstract repository receiving imported budget line items.
    """

    @abstractmethod
    def create_location_items(self, location_id: int, items: Sequence[BudgetLineItem]) -> List[BudgetLineItem]:
        """
        Create or update the budget items of one location.

        Args:
            location_id: Owning location
            items: Computed, non-group line items

        Returns:
            The stored items
        """

    @abstractmethod
    def create_project_items(self, project_id: int, items: Sequence[BudgetLineItem]) -> List[BudgetLineItem]:
        """
        Create or update the project-level budget, group rows included.

        Args:
            project_id: Owning project
            items: Computed line items followed by group rows

        Returns:
            The stored items
        """
