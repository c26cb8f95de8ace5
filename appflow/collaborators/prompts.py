"""Prompt text shared by every collaborator backend."""

import json
from collections.abc import Sequence

from appflow.models.feature import Feature
from appflow.models.generation_config import (
    FeatureStyle,
    ProductScope,
    SummaryLength,
    WorkflowComplexity,
    WorkflowType,
)
from appflow.models.workflow_graph import Edge, Node

PRODUCT_MANAGER_ROLE = "You are an expert product manager."
ARCHITECT_ROLE = "You are a software architect specializing in node-based workflow diagrams."
EXTENSION_ROLE = "You are a software architect."
WRITER_ROLE = "You are a technical writer."

STYLE_INSTRUCTIONS = {
    FeatureStyle.standard: "Focus on standard, essential features for this type of app.",
    FeatureStyle.creative: (
        "Think outside the box. Suggest unique, innovative, and differentiating "
        "features that make this app stand out."
    ),
}

SCOPE_INSTRUCTIONS = {
    ProductScope.mvp: (
        "Strictly focus on a Minimum Viable Product (MVP). List ONLY the absolute "
        "critical core features required to validate the idea. Keep it lean and simple."
    ),
    ProductScope.complete: (
        "Design a complete, production-ready product. Include comprehensive features, "
        "including user settings, administration, edge-case handling, and advanced functionality."
    ),
}

COMPLEXITY_INSTRUCTIONS = {
    WorkflowComplexity.simple: "Create a clear, high-level workflow.",
    WorkflowComplexity.complex: "Create a comprehensive, detailed workflow.",
}

WORKFLOW_TYPE_INSTRUCTIONS = {
    WorkflowType.full_stack: "Include all types of nodes: views, logic, database, user actions.",
    WorkflowType.frontend_only: (
        "Focus strictly on Views and Client-side Logic. Do NOT include Database nodes. "
        "Simulate backend calls with Logic nodes."
    ),
    WorkflowType.backend_focus: (
        "Focus heavily on Logic, API endpoints, and Database interactions. "
        "Minimize Views, only showing key entry points."
    ),
}

LENGTH_INSTRUCTIONS = {
    SummaryLength.short: "Write a concise 1-paragraph summary abstract.",
    SummaryLength.detailed: (
        "Write a comprehensive technical document including architecture overview, "
        "user flow breakdown, and data handling details. Use Markdown formatting with headers."
    ),
}

WORKFLOW_SHAPE = """{
  "nodes": [{ "id": "1", "type": "view", "label": "Home", "details": "...", "x": 0, "y": 0 }],
  "edges": [{ "id": "e1", "source": "1", "target": "2", "label": "Click" }]
}"""


def features_prompt(idea: str, style: FeatureStyle, scope: ProductScope) -> str:
    return (
        f'Generate a list of feature cards for a web/mobile application based on this idea: "{idea}".\n\n'
        f"Style: {STYLE_INSTRUCTIONS[style]}\n"
        f"Scope: {SCOPE_INSTRUCTIONS[scope]}\n\n"
        "Focus on interactive and functional features."
    )


def workflow_prompt(
    idea: str,
    features: Sequence[Feature],
    complexity: WorkflowComplexity,
    scope: WorkflowType,
) -> str:
    feature_list = "\n".join(f"{f.title}: {f.description}" for f in features)
    return (
        "Create a node-based workflow for an app with these features:\n"
        f"Idea: {idea}\n"
        f"Features:\n{feature_list}\n\n"
        f"Goal: {COMPLEXITY_INSTRUCTIONS[complexity]} Design a logical flow of the application.\n"
        f"Scope: {WORKFLOW_TYPE_INSTRUCTIONS[scope]}\n\n"
        "Return a JSON structure with 'nodes' and 'edges'.\n"
        "Nodes must have x,y coordinates spaced out logically (approx 250-300px gap) to form a visual flow.\n"
        "Node types: 'view' (UI screens), 'logic' (functions/api calls), "
        "'database' (storage), 'userAction' (clicks).\n\n"
        f"Structure:\n{WORKFLOW_SHAPE}\n"
    )


def extension_prompt(context: str, request: str) -> str:
    return (
        f"Existing Workflow JSON: {context}\n\n"
        f'User Request: "Add a feature: {request}"\n\n'
        "Generate ONLY the NEW nodes and NEW edges required to implement this feature "
        "into the existing workflow.\n"
        "- Connect new nodes to relevant existing nodes by ID.\n"
        "- Do NOT return the old nodes/edges, only the new ones.\n"
        "- Ensure new nodes have distinct IDs (e.g., prefix with 'new-').\n"
        "- Place new nodes at x,y coordinates that don't overlap heavily with existing ones.\n\n"
        'Return JSON format: { "nodes": [...], "edges": [...] }'
    )


def description_prompt(
    idea: str,
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    length: SummaryLength,
) -> str:
    summary = {
        "nodes": [
            {"label": n.label, "type": n.kind.value, "details": n.details}
            for n in nodes
        ],
        "edges": len(edges),
    }
    return (
        "Based on the following workflow design, write a professional technical "
        f'explanation for the application "{idea}".\n\n'
        f"Workflow Summary: {json.dumps(summary)}\n\n"
        f"Instruction: {LENGTH_INSTRUCTIONS[length]}\n\n"
        "Include:\n"
        "1. Summary of the architecture.\n"
        "2. Key interactions described in the diagram.\n"
    )
