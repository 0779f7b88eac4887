"""
Root pytest configuration and fixtures for the dify_ai SDK.
"""

from pathlib import Path
import sys

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def api_key():
    """Test API key."""
    return "app-test-key"


@pytest.fixture
def base_url():
    """Test base URL."""
    return "https://mock.api"


@pytest.fixture
def chat_blocking_body():
    """Blocking /chat-messages response."""
    return {
        "id": "id1",
        "answer": "Hello world",
        "task_id": "task1",
        "conversation_id": "conv1",
        "message_id": "msg1",
        "metadata": {"usage": {"prompt_tokens": 5, "completion_tokens": 7, "total_tokens": 12}},
    }


@pytest.fixture
def workflow_blocking_body():
    """Blocking /workflows/run response."""
    return {
        "task_id": "task9",
        "workflow_run_id": "wfr9",
        "data": {
            "id": "wfr9",
            "workflow_id": "wf-def",
            "status": "succeeded",
            "outputs": {"result": "Workflow says hi"},
        },
    }
