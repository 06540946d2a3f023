"""
Pydantic data models package.

Contains the validation models for on-disk rule sources.
"""

from .rule_file import JsonRule, JsonRuleFile

__all__ = [
    "JsonRule",
    "JsonRuleFile",
]
