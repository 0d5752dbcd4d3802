"""
Agent messages for test-run analysis.

Prompts are versioned and tracked in Git for rollback capability.
The coordinator agent owns the report schema; we only frame the input.
"""


def build_task_prompt(input_text: str) -> str:
    """Build the analysis message for a test run."""
    return f"Analyze the following test input:\n\n{input_text}"


# Prompt version for tracking/rollback
PROMPT_VERSION = "v1.0"
