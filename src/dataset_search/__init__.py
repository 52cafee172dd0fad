"""Hybrid dataset search: multi-query recall, rank fusion, rerank and token budgeting."""
