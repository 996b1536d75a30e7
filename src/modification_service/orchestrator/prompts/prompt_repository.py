from dataclasses import dataclass


@dataclass(frozen=True)
class PromptSpec:
    name: str
    system: str
    human: str


def build_chat_prompt(spec: PromptSpec):
    # Local import to avoid import cycles at module import time
    from langchain_core.prompts import ChatPromptTemplate

    return ChatPromptTemplate.from_messages([
        ("system", spec.system),
        ("human", spec.human),
    ])


def render_prompt(spec: PromptSpec, **values) -> str:
    """Render ``spec`` to the plain text sent to the reasoning service."""
    messages = build_chat_prompt(spec).format_messages(**values)
    return "\n\n".join(str(m.content) for m in messages)


SCOPE_CLASSIFIER = PromptSpec(
    name="scope_classifier",
    system=(
        "Role: Senior React engineer triaging change requests for a generated web application.\n"
        "Objective: Choose exactly one edit strategy for the request.\n\n"
        "Strategies:\n"
        "- NODE_EDIT: change specific existing elements or functions (a button colour, a label, one handler)\n"
        "- FULL_FILE: rework a whole file (layout, theme, many elements at once, restructuring)\n"
        "- COMPONENT_ADDITION: create a new page or reusable component that does not exist yet\n\n"
        "Rules:\n"
        "- Prefer NODE_EDIT when the request names one element\n"
        "- Choose COMPONENT_ADDITION only when something new must be created\n"
        "- A keyword pre-analysis is provided as a hint; overrule it when the request says otherwise\n\n"
        "Output Contract (JSON only):\n"
        "{{\"strategy\": \"NODE_EDIT|FULL_FILE|COMPONENT_ADDITION\", \"reasoning\": \"one sentence\", "
        "\"componentName\": \"PascalCase name, only for COMPONENT_ADDITION\", "
        "\"componentType\": \"page|component, only for COMPONENT_ADDITION\"}}"
    ),
    human=(
        "Request: {request}\n\n"
        "Project summary:\n{project_summary}\n\n"
        "Conversation context:\n{conversation_context}\n\n"
        "Keyword pre-analysis: {heuristic_strategy} (confidence {heuristic_confidence}/100)"
    ),
)

RELEVANCE_SCORER = PromptSpec(
    name="relevance_scorer",
    system=(
        "Role: Code reviewer deciding whether one file must change to satisfy a request.\n"
        "Objective: Judge relevance, give a 0-100 confidence score and, for NODE_EDIT, name the node ids to change.\n\n"
        "Rules:\n"
        "- Score 80-100 only when the file clearly contains what the request refers to\n"
        "- Name only node ids listed below; list the smallest set of nodes that must change\n"
        "- For FULL_FILE leave targets empty\n\n"
        "Output Contract (JSON only):\n"
        "{{\"relevant\": true, \"score\": 0, \"reasoning\": \"one sentence\", \"targets\": [\"node_1\"]}}"
    ),
    human=(
        "Request: {request}\n"
        "Strategy: {strategy}\n\n"
        "File: {file_path} ({file_type}, {line_count} lines)\n"
        "Project context:\n{project_context}\n\n"
        "Structural nodes:\n{nodes_preview}"
    ),
)

NODE_EDITOR = PromptSpec(
    name="node_editor",
    system=(
        "Role: Senior React/TypeScript engineer making minimal, surgical edits.\n"
        "Objective: Rewrite only the listed nodes so the request is satisfied.\n\n"
        "Rules:\n"
        "- Each node covers complete source lines; return complete replacement lines for that range\n"
        "- Keep every import, export and the component name intact\n"
        "- Omit nodes that need no change\n"
        "- If new imports are needed, list them in requiredImports\n\n"
        "Output Contract (JSON only):\n"
        "{{\"node_3\": {{\"modifiedCode\": \"...\", \"requiredImports\": [\"import x from 'y';\"]}}, "
        "\"node_7\": \"replacement lines\"}}"
    ),
    human=(
        "Request: {request}\n\n"
        "File: {file_path}\n\n"
        "Nodes to edit:\n{nodes}"
    ),
)

FULL_FILE_REWRITER = PromptSpec(
    name="full_file_rewriter",
    system=(
        "Role: Senior React/TypeScript engineer.\n"
        "Objective: Return the complete updated file implementing the request.\n\n"
        "Rules:\n"
        "- Keep every existing import and export line and the primary component name\n"
        "- Preserve behaviour the request does not mention\n"
        "- Return the whole file in a single fenced code block preceded by // FILE: <path>"
    ),
    human=(
        "Request: {request}\n"
        "Why this file: {reasoning}\n\n"
        "// FILE: {file_path}\n"
        "```\n{content}\n```"
    ),
)

COMPONENT_GENERATOR = PromptSpec(
    name="component_generator",
    system=(
        "Role: Senior React/TypeScript engineer.\n"
        "Objective: Write one new {component_type} named {component_name}.\n\n"
        "Rules:\n"
        "- TypeScript + React function component, default export named exactly {component_name}\n"
        "- Use only react and files that exist in the project\n"
        "- Tailwind utility classes for styling\n"
        "- Return the file in a single fenced code block preceded by // FILE: {target_path}"
    ),
    human=(
        "Request: {request}\n\n"
        "Project summary:\n{project_summary}"
    ),
)

ROUTE_UPDATER = PromptSpec(
    name="route_updater",
    system=(
        "Role: Senior React engineer maintaining the application router.\n"
        "Objective: Register one new page in the root component.\n\n"
        "Rules:\n"
        "- Add `{import_line}` next to the other imports\n"
        "- Add exactly one route: {route_line}\n"
        "- Keep every existing route, import and export unchanged\n"
        "- Return the whole file in a single fenced code block"
    ),
    human=(
        "// FILE: {file_path}\n"
        "```\n{content}\n```"
    ),
)
