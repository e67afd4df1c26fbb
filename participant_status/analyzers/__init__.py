"""
分析器模块 - 组件状态评估与整体状态归约
"""

from .evaluator import evaluate_component
from .reducer import determine_overall_status, summarize_components

__all__ = ["evaluate_component", "determine_overall_status", "summarize_components"]
