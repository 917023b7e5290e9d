from __future__ import annotations

from fastapi import Depends

from .aggregator import DailySessionAggregator
from .repositories import Repository, get_repository
from .task_engine import TaskEngine


def get_task_engine(repo: Repository = Depends(get_repository)) -> TaskEngine:
    return TaskEngine(repo)


def get_aggregator(repo: Repository = Depends(get_repository)) -> DailySessionAggregator:
    return DailySessionAggregator(repo)
