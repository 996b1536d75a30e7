"""
Policy settings for modification orchestration.

All numeric values are tunable defaults. They are applied uniformly within one request.
"""

from functools import lru_cache
from pydantic import Field

from .base_config import BaseConfig


class ModificationSettings(BaseConfig):
    """Settings that drive classification, relevance admission, patching and session state."""

    PROJECT_ROOT: str = Field(default=".", description="Root directory of the project being modified")
    RESTRICT_WRITES_TO_SRC: bool = Field(
        default=True,
        description="Reject writes outside src/ when the project has a src directory",
    )

    # Scope classification
    HEURISTIC_FALLBACK_CONFIDENCE: int = Field(
        default=60,
        ge=0,
        le=100,
        description="Heuristic confidence above which it is used when the service reply is unusable",
    )
    HEURISTIC_OVERRIDE_NOTE_CONFIDENCE: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Heuristic confidence above which a disagreement with the service is recorded",
    )

    # Relevance scoring
    RELEVANCE_ADMISSION_THRESHOLD: int = Field(
        default=70,
        ge=0,
        le=100,
        description="Minimum relevance score for a file to be admitted into the edit set",
    )
    MAX_CONCURRENT_SCORING: int = Field(default=4, ge=1, description="Concurrent relevance calls per request")
    MAX_NODES_IN_PROMPT: int = Field(default=20, ge=1, description="Structural nodes previewed per relevance prompt")
    MAX_SNIPPET_CHARS: int = Field(default=600, ge=40, description="Characters of each node snippet shown in prompts")

    # Structural parsing
    MAX_NODE_DEPTH: int = Field(default=6, ge=1, description="Maximum element nesting depth emitted by the parser")

    # Reasoning call budgets
    CLASSIFY_MAX_OUTPUT: int = Field(default=400, description="Output budget for scope classification")
    RELEVANCE_MAX_OUTPUT: int = Field(default=400, description="Output budget for relevance scoring")
    NODE_EDIT_MAX_OUTPUT: int = Field(default=4000, description="Output budget for batched node edits")
    FULL_FILE_MAX_OUTPUT: int = Field(default=8000, description="Output budget for full-file rewrites")
    COMPONENT_MAX_OUTPUT: int = Field(default=4000, description="Output budget for component generation")
    ANALYSIS_TEMPERATURE: float = Field(default=0.0, ge=0.0, le=2.0, description="Temperature for classification and scoring")
    GENERATION_TEMPERATURE: float = Field(default=0.2, ge=0.0, le=2.0, description="Temperature for code generation")

    # Session state
    PROJECT_FILES_TTL_SEC: int = Field(default=7200, description="TTL of the cached project file map")
    CHANGE_LOG_TTL_SEC: int = Field(default=1800, description="TTL of the cached change log")
    SESSION_CONTEXT_TTL_SEC: int = Field(default=3600, description="TTL of cached conversation context")
    RECENT_CHANGES_IN_SUMMARY: int = Field(default=5, ge=1, description="Changes listed in the contextual summary")
    CHANGE_LOG_RETENTION: int = Field(
        default=50,
        ge=1,
        description="Change log entries kept verbatim before older ones are folded into a digest",
    )
    MEMORY_FALLBACK_SESSIONS: int = Field(
        default=256,
        ge=1,
        description="Sessions whose change log and start time are mirrored in memory for cache outages",
    )


@lru_cache()
def get_modification_settings() -> ModificationSettings:
    """Get cached modification settings."""
    return ModificationSettings()
