"""Centralized configuration for d2-syntax."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ParseConfig:
    """Configuration for a single parse."""

    max_depth: int = 100
    keep_comments: bool = True
