"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the HTTP layer:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  SOCKET SERVER      listening socket, accept loop on the control    │
    │                     thread, 1s accept timeout to notice shutdown    │
    └─────────────────────────────────┬───────────────────────────────────┘
                                      │ Connection per accepted socket
                                      ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  THREAD POOL        fixed number of workers, unbounded FIFO queue,  │
    │                     grace-period shutdown that cancels leftovers    │
    └─────────────────────────────────┬───────────────────────────────────┘
                                      │ one worker per connection
                                      ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  CONNECTION         one request, one response, then close           │
    │                     read_lines() / write() / close() / abort()      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool, Task

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
    "Task",
]
