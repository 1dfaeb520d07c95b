"""Connection state machine: enforce allowed lifecycle transitions."""
import enum


class ConnectionState(str, enum.Enum):
    CONNECTING = "CONNECTING"
    IDENTIFIED = "IDENTIFIED"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


# Allowed transitions: from_state -> {to_state, ...}
ALLOWED: dict[ConnectionState, set[ConnectionState]] = {
    ConnectionState.CONNECTING: {ConnectionState.IDENTIFIED, ConnectionState.CLOSED},
    ConnectionState.IDENTIFIED: {ConnectionState.ACTIVE, ConnectionState.CLOSED},
    ConnectionState.ACTIVE: {ConnectionState.CLOSED},
    ConnectionState.CLOSED: set(),
}


def transition(connection, to_state: ConnectionState) -> None:
    """Move `connection` to `to_state`. Raises ValueError if the transition is not allowed."""
    current = connection.state
    if current == ConnectionState.CLOSED:
        raise ValueError(f"Connection {connection.id} already closed")
    if to_state not in ALLOWED.get(current, set()):
        raise ValueError(f"Transition {current.value} -> {to_state.value} not allowed")
    connection.state = to_state
