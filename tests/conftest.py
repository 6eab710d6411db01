"""
Shared fixtures for budget engine tests.
"""
import pytest
import yaml

from budget_engine.config import BudgetEngineConfig, DEFAULT_CONFIG_PATH, get_config


TEMPLATE_HEADER = [
    "Line Item Number", "Line Item Name", "Unconverted Unit", "Unconverted Qty",
    "Actual Qty", "Unit Cost", "Unit Total", "Cost Code", "Converted Unit",
    "Converted Qty", "Production Rate", "Hours", "Labor Cost", "Equipment Cost",
    "Trucking Cost", "Dump Fees", "Material Cost", "Subcontractor Cost",
    "Budget Total", "Billing",
]

SW62_HEADER = [
    "Line Item", "SW62 - Centinela", "Unit", "QTY", "Actuals", "Unit Cost",
    "Unit Total", "Cost Code", "UM", "QTY", "PX", "HRS", "LBR COST", "EQUIP",
    "TRUCKING", "DUMP FEES", "MATERIAL", "SUB", "BUDGET", "PROFIT",
]


@pytest.fixture
def config():
    """The packaged default configuration."""
    return get_config()


@pytest.fixture
def template_header():
    return list(TEMPLATE_HEADER)


@pytest.fixture
def sw62_header():
    return list(SW62_HEADER)


@pytest.fixture
def make_row(config):
    """
    Build a raw sheet row for a layout from field keyword arguments.

    Unspecified cells are None. Usage: make_row(line_item_number="1", cost_code="Concrete")
    """
    def _make_row(layout: str = "template", **values):
        columns = config.get_layout_definition(layout)["columns"]
        width = max(columns.values()) + 1
        row = [None] * width
        for name, value in values.items():
            row[columns[name]] = value
        return row
    return _make_row


@pytest.fixture
def write_config(tmp_path):
    """
    Write a modified copy of the default configuration and load it.

    Usage: write_config(lambda data: data["formulas"].update(labor_rate=90))
    """
    def _write_config(modify=None):
        with open(DEFAULT_CONFIG_PATH) as f:
            data = yaml.safe_load(f)
        if modify is not None:
            modify(data)
        path = tmp_path / "budget_engine_config.yaml"
        path.write_text(yaml.safe_dump(data))
        return BudgetEngineConfig(path)
    return _write_config
