"""
Storage abstractions.

Integration Points:
- AccountStore → relational database
- QueueStorage → RabbitMQ
"""

from franchise_auth.storage.base import (
    AccountStore,
    QueueStorage,
    StorageProvider,
    StorageError,
    DuplicateEmailError,
    DuplicateRecordError,
)
from franchise_auth.storage.local import (
    InMemoryAccountStore,
    InMemoryQueueStorage,
    create_local_storage,
)
from franchise_auth.storage.rabbitmq import RabbitMQQueueStorage

__all__ = [
    "AccountStore",
    "QueueStorage",
    "StorageProvider",
    "StorageError",
    "DuplicateEmailError",
    "DuplicateRecordError",
    "InMemoryAccountStore",
    "InMemoryQueueStorage",
    "RabbitMQQueueStorage",
    "create_local_storage",
]
