from flask_socketio import join_room, leave_room


def room_name(session_id: str) -> str:
    return f"session:{session_id}"


class RoomBroadcaster:
    """Socket.IO fan-out: one room per session, plus direct and namespace-wide emits.

    Uses socketio.emit rather than flask_socketio.emit so it also works from
    background tasks outside a request context.
    """

    def __init__(self, socketio, namespace: str = '/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def join_room(self, sid: str, session_id: str) -> str:
        room = room_name(session_id)
        join_room(room, sid=sid, namespace=self.namespace)
        return room

    def leave_room(self, sid: str, session_id: str) -> str:
        room = room_name(session_id)
        leave_room(room, sid=sid, namespace=self.namespace)
        return room

    def broadcast(self, session_id: str, event: str, payload: dict, skip_sid: str = None) -> None:
        self.socketio.emit(event, payload, to=room_name(session_id), skip_sid=skip_sid, namespace=self.namespace)

    def emit_to(self, sid: str, event: str, payload: dict) -> None:
        self.socketio.emit(event, payload, to=sid, namespace=self.namespace)

    def announce(self, event: str, payload: dict) -> None:
        self.socketio.emit(event, payload, namespace=self.namespace)
