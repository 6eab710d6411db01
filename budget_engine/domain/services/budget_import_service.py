"""
Budget Import Service - Sheet → validated, computed budget line items.

Pipeline:
1. Resolve the column layout (explicit name, or detected from the header row)
2. Validate the raw sheet; stop here when it has errors
3. Map each body row to a draft (lenient numeric parsing)
4. Apply the formula engine (forward mode)
5. Hand the items to the repository, when one is configured
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union
import logging

from ..entities import BudgetLineItem, ColumnLayout, ValidationResult, get_layout
from ..exceptions import ImportRejectedError
from .budget_validation_service import BudgetValidationService
from .formula_engine import FormulaEngine
from ...config import BudgetEngineConfig, get_config
from ...infrastructure.repositories import BudgetItemRepository
from ...modules.mapping import Row, detect_layout, map_sheet

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Result of an import attempt."""
    validation: ValidationResult
    layout: str
    items: List[BudgetLineItem] = field(default_factory=list)
    groups: List[BudgetLineItem] = field(default_factory=list)
    persisted: bool = False

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'layout': self.layout,
            'validation': self.validation.to_dict(),
            'items': [item.to_dict() for item in self.items],
            'groups': [group.to_dict() for group in self.groups],
            'persisted': self.persisted,
        }


class BudgetImportService:
    """
    Runs budget spreadsheets through validation, mapping and formulas.

    Nothing reaches the repository unless the whole sheet validates.
    """

    def __init__(self, config: Optional[BudgetEngineConfig] = None,
                 repository: Optional[BudgetItemRepository] = None,
                 engine: Optional[FormulaEngine] = None):
        self.config = config or get_config()
        self.repository = repository
        self.engine = engine or FormulaEngine.from_config(self.config)

    def resolve_layout(self, sheet: Sequence[Row],
                       layout: Union[str, ColumnLayout, None] = None) -> ColumnLayout:
        """Explicit layout, layout by name, or the one detected from the header row."""
        if isinstance(layout, ColumnLayout):
            return layout
        if layout is not None:
            return get_layout(layout, self.config)
        if not sheet:
            return get_layout(None, self.config)
        detected = detect_layout(sheet[0] or [], self.config)
        logger.debug(f"Detected layout '{detected.name}'")
        return detected

    def process(self, sheet: Sequence[Row],
                layout: Union[str, ColumnLayout, None] = None) -> ImportResult:
        """
        Validate, map and compute a sheet without persisting anything.

        Returns:
            ImportResult; items and groups are empty when validation failed
        """
        resolved = self.resolve_layout(sheet, layout)
        validation = BudgetValidationService(self.config, layout=resolved).validate(sheet)
        result = ImportResult(validation=validation, layout=resolved.name)
        if not validation.is_valid:
            return result

        for draft in map_sheet(sheet, resolved, self.config):
            computed = self.engine.compute(draft)
            if computed.is_group:
                result.groups.append(computed)
            else:
                result.items.append(computed)
        return result

    def import_location(self, sheet: Sequence[Row], location_id: int,
                        layout: Union[str, ColumnLayout, None] = None,
                        raise_on_invalid: bool = False) -> ImportResult:
        """
        Import a sheet into one location's budget. Group rows are not stored.

        Raises:
            ImportRejectedError: If raise_on_invalid and validation failed
        """
        result = self.process(sheet, layout)
        if not result.is_valid:
            if raise_on_invalid:
                raise ImportRejectedError(result.validation)
            return result

        result.items = [item.with_location(location_id) for item in result.items]
        logger.info(
            f"Location {location_id} import: {result.validation.row_count} rows, "
            f"{len(result.items)} items, {len(result.groups)} group rows skipped"
        )

        if self.repository is not None:
            self.repository.create_location_items(location_id, result.items)
            result.persisted = True
        return result

    def import_project(self, sheet: Sequence[Row], project_id: int,
                       layout: Union[str, ColumnLayout, None] = None,
                       raise_on_invalid: bool = False) -> ImportResult:
        """
        Import a sheet as a project-level budget, keeping group rows for summaries.

        Raises:
            ImportRejectedError: If raise_on_invalid and validation failed
        """
        result = self.process(sheet, layout)
        if not result.is_valid:
            if raise_on_invalid:
                raise ImportRejectedError(result.validation)
            return result

        logger.info(
            f"Project {project_id} import: {result.validation.row_count} rows, "
            f"{len(result.items)} items, {len(result.groups)} groups"
        )

        if self.repository is not None:
            self.repository.create_project_items(project_id, result.items + result.groups)
            result.persisted = True
        return result
