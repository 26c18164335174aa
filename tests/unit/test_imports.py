"""
Import validation tests.

These tests ensure all modules can be imported successfully, catching
issues like missing dependencies or circular imports BEFORE deployment.

Run with: pytest tests/unit/test_imports.py -v
"""

import importlib
from pathlib import Path

import pytest

PACKAGE_PATH = Path(__file__).parent.parent.parent / "src" / "helpdesk"


class TestHandlerImports:
    """Verify all Lambda entrypoints can be imported without errors."""

    @pytest.mark.parametrize("module_name", [
        "helpdesk.handlers.main",
        "helpdesk.handlers.event_worker",
        "helpdesk.handlers.health_check",
    ])
    def test_handler_import(self, module_name: str):
        try:
            module = importlib.import_module(module_name)
            assert hasattr(module, "lambda_handler"), f"{module_name} missing lambda_handler"
        except ImportError as e:
            pytest.fail(f"Failed to import {module_name}: {e}")


class TestModuleImports:
    """Verify services, repositories, models and utils import cleanly."""

    @pytest.mark.parametrize("module_name", [
        "helpdesk.container",
        "helpdesk.services.ai_service",
        "helpdesk.services.category_service",
        "helpdesk.services.change_feed",
        "helpdesk.services.chat_service",
        "helpdesk.services.email_service",
        "helpdesk.services.event_queue",
        "helpdesk.services.feedback_service",
        "helpdesk.services.ingestion_service",
        "helpdesk.services.knowledge_service",
        "helpdesk.services.message_service",
        "helpdesk.services.notification_relay",
        "helpdesk.services.quick_reply_service",
        "helpdesk.services.ticket_service",
        "helpdesk.services.webhook_service",
        "helpdesk.repositories.schema",
        "helpdesk.repositories.postgres_repo",
        "helpdesk.models",
        "helpdesk.utils.logging_config",
        "helpdesk.utils.cache_service",
        "helpdesk.utils.error_handling",
        "helpdesk.utils.validators",
    ])
    def test_module_import(self, module_name: str):
        try:
            importlib.import_module(module_name)
        except ImportError as e:
            pytest.fail(f"Failed to import {module_name}: {e}")


class TestNoSrcPrefix:
    """Ensure no modules use 'from src.' imports (breaks in Lambda)."""

    def test_no_src_prefix(self):
        for py_file in PACKAGE_PATH.rglob("*.py"):
            content = py_file.read_text(encoding="utf-8")
            assert "from src." not in content, f"{py_file.name} contains 'from src.' import"
            assert "import src." not in content, f"{py_file.name} contains 'import src.' import"
