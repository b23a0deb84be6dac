#!/usr/bin/env python3
"""
Coach Scribe - AI Infrastructure
Reasoning service clients, prompts and behavioral coding
"""

# Reasoning clients
from .reasoning_client import (
    AnalysisResponse,
    ClaudeReasoningClient,
    ProxyReasoningClient,
    ReasoningClient,
    competency_counts,
    create_reasoning_client,
    parse_analysis_text,
)

# Roles and coding
from .coding import (
    BehavioralCoder,
    CodingOutcome,
    SpeakerRoleResolver,
    apply_roles,
    attach_tags,
    extract_review_flags,
)

# Prompts
from . import prompts

__all__ = [
    # Reasoning clients
    "AnalysisResponse",
    "ClaudeReasoningClient",
    "ProxyReasoningClient",
    "ReasoningClient",
    "competency_counts",
    "create_reasoning_client",
    "parse_analysis_text",
    # Roles and coding
    "BehavioralCoder",
    "CodingOutcome",
    "SpeakerRoleResolver",
    "apply_roles",
    "attach_tags",
    "extract_review_flags",
    # Prompt module
    "prompts",
]
