"""Task/room store backends."""

from hkops.store.base import TaskStore
from hkops.store.graphql import GraphQLTaskStore
from hkops.store.memory import InMemoryTaskStore

__all__ = [
    "GraphQLTaskStore",
    "InMemoryTaskStore",
    "TaskStore",
]
