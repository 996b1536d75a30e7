from modification_service.orchestrator.prompts.prompt_repository import (
    COMPONENT_GENERATOR,
    FULL_FILE_REWRITER,
    NODE_EDITOR,
    RELEVANCE_SCORER,
    ROUTE_UPDATER,
    SCOPE_CLASSIFIER,
    PromptSpec,
    build_chat_prompt,
    render_prompt,
)

__all__ = [
    "COMPONENT_GENERATOR",
    "FULL_FILE_REWRITER",
    "NODE_EDITOR",
    "RELEVANCE_SCORER",
    "ROUTE_UPDATER",
    "SCOPE_CLASSIFIER",
    "PromptSpec",
    "build_chat_prompt",
    "render_prompt",
]
