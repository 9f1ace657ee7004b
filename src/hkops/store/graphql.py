"""GraphQL implementation of TaskStore for the dashboard backend."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from hkops.core.errors import RoomNotFoundError, StoreUnavailableError, TaskNotFoundError
from hkops.core.retry import retry_with_backoff
from hkops.models.config import GraphQLStoreConfig
from hkops.models.enums import RoomStatus, TaskStatus
from hkops.models.room import Room
from hkops.models.task import Task, TaskInput
from hkops.store.base import TaskStore

_ROOM_FIELDS = "id number type status price"
_TASK_FIELDS = f"""
    id
    room {{ {_ROOM_FIELDS} }}
    taskType
    status
    assignedTo
    priority
    estimatedTime
    actualTime
    notes
    createdAt
    completedAt
"""

LIST_TASKS_QUERY = f"""
query GetHousekeepingTasks($status: String, $roomId: ID) {{
  housekeepingTasks(status: $status, roomId: $roomId) {{ {_TASK_FIELDS} }}
}}
"""

GET_TASK_QUERY = f"""
query GetHousekeepingTask($id: ID!) {{
  housekeepingTask(id: $id) {{ {_TASK_FIELDS} }}
}}
"""

LIST_ROOMS_QUERY = f"""
query GetRooms($status: String, $type: String) {{
  rooms(status: $status, type: $type) {{ {_ROOM_FIELDS} }}
}}
"""

CREATE_TASK_MUTATION = f"""
mutation CreateHousekeepingTask($input: HousekeepingTaskInput!) {{
  createHousekeepingTask(input: $input) {{ {_TASK_FIELDS} }}
}}
"""

UPDATE_TASK_MUTATION = f"""
mutation UpdateHousekeepingTask($id: ID!, $input: UpdateHousekeepingTaskInput!) {{
  updateHousekeepingTask(id: $id, input: $input) {{ {_TASK_FIELDS} }}
}}
"""

COMPLETE_TASK_MUTATION = f"""
mutation CompleteHousekeepingTask($id: ID!, $actualTime: Int, $notes: String) {{
  completeHousekeepingTask(id: $id, actualTime: $actualTime, notes: $notes) {{ {_TASK_FIELDS} }}
}}
"""

DELETE_TASK_MUTATION = """
mutation DeleteHousekeepingTask($id: ID!) {
  deleteHousekeepingTask(id: $id)
}
"""

UPDATE_ROOM_STATUS_MUTATION = f"""
mutation UpdateRoomStatus($roomId: ID!, $status: String!) {{
  updateRoomStatus(roomId: $roomId, status: $status) {{ {_ROOM_FIELDS} }}
}}
"""

# snake_case model field -> backend input field
_TASK_INPUT_FIELDS = {
    "room_id": "roomId",
    "task_type": "taskType",
    "priority": "priority",
    "estimated_time": "estimatedTime",
    "assigned_to": "assignedTo",
    "notes": "notes",
}
_TASK_UPDATE_FIELDS = {
    "status": "status",
    "assigned_to": "assignedTo",
    "priority": "priority",
    "estimated_time": "estimatedTime",
    "actual_time": "actualTime",
    "notes": "notes",
}


class GraphQLTaskStore(TaskStore):
    """Talks to the dashboard's GraphQL API over HTTP.

    Transport errors, HTTP errors and GraphQL ``errors`` are raised as
    ``StoreUnavailableError``. Read queries are retried when the config
    carries a ``read_retry`` policy; mutations are never retried.

    ``updateHousekeepingTask`` never touches ``completedAt``, so a task
    reopened through it keeps the old value on the backend. Parsed tasks
    carry ``completed_at`` only while their status is COMPLETED.
    """

    def __init__(
        self,
        config: GraphQLStoreConfig,
        *,
        client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or logging.getLogger("hkops.store.graphql")
        self._client = client or httpx.AsyncClient(timeout=config.timeout)

    # Task operations

    async def list_tasks(
        self,
        status: TaskStatus | None = None,
        room_id: str | None = None,
    ) -> list[Task]:
        data = await self._read(LIST_TASKS_QUERY, {"status": status, "roomId": room_id})
        return [self._parse_task(item) for item in data.get("housekeepingTasks") or []]

    async def get_task(self, task_id: str) -> Task | None:
        data = await self._read(GET_TASK_QUERY, {"id": task_id})
        item = data.get("housekeepingTask")
        return self._parse_task(item) if item is not None else None

    async def create_task(self, data: TaskInput) -> Task:
        payload = {
            remote: value
            for local, remote in _TASK_INPUT_FIELDS.items()
            if (value := getattr(data, local)) is not None
        }
        result = await self._execute(CREATE_TASK_MUTATION, {"input": payload})
        item = result.get("createHousekeepingTask")
        if item is None:
            raise StoreUnavailableError("createHousekeepingTask returned no task")
        return self._parse_task(item)

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        payload = {
            _TASK_UPDATE_FIELDS[key]: value
            for key, value in changes.items()
            if key in _TASK_UPDATE_FIELDS
        }
        result = await self._execute(UPDATE_TASK_MUTATION, {"id": task_id, "input": payload})
        item = result.get("updateHousekeepingTask")
        if item is None:
            raise TaskNotFoundError(task_id)
        return self._parse_task(item)

    async def complete_task(
        self,
        task_id: str,
        actual_time: int | None = None,
        notes: str | None = None,
    ) -> Task:
        result = await self._execute(
            COMPLETE_TASK_MUTATION,
            {"id": task_id, "actualTime": actual_time, "notes": notes},
        )
        item = result.get("completeHousekeepingTask")
        if item is None:
            raise TaskNotFoundError(task_id)
        return self._parse_task(item)

    async def delete_task(self, task_id: str) -> bool:
        result = await self._execute(DELETE_TASK_MUTATION, {"id": task_id})
        return bool(result.get("deleteHousekeepingTask"))

    # Room operations

    async def list_rooms(
        self,
        status: RoomStatus | None = None,
        room_type: str | None = None,
    ) -> list[Room]:
        data = await self._read(LIST_ROOMS_QUERY, {"status": status, "type": room_type})
        return [Room.model_validate(item) for item in data.get("rooms") or []]

    async def update_room_status(self, room_id: str, status: RoomStatus) -> Room:
        result = await self._execute(
            UPDATE_ROOM_STATUS_MUTATION, {"roomId": room_id, "status": status}
        )
        item = result.get("updateRoomStatus")
        if item is None:
            raise RoomNotFoundError(room_id)
        return Room.model_validate(item)

    async def close(self) -> None:
        await self._client.aclose()

    # Transport

    async def _read(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        if self._config.read_retry is None:
            return await self._execute(query, variables)
        return await retry_with_backoff(
            self._execute,
            self._config.read_retry,
            query,
            variables,
            retry_on=(StoreUnavailableError,),
            logger=self._logger,
        )

    async def _execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = await self._client.post(
                self._config.endpoint,
                json={"query": query, "variables": variables},
                headers=self._build_headers(),
            )
            resp.raise_for_status()
            body: dict[str, Any] = resp.json()
        except httpx.TimeoutException as exc:
            raise StoreUnavailableError("timeout") from exc
        except httpx.HTTPStatusError as exc:
            raise StoreUnavailableError(f"http_{exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            raise StoreUnavailableError("invalid JSON in response") from exc

        errors = body.get("errors")
        if errors:
            messages = "; ".join(str(e.get("message", "unknown error")) for e in errors)
            self._logger.warning("GraphQL errors: %s", messages, extra={"errors": errors})
            raise StoreUnavailableError(messages)
        data = body.get("data")
        if not isinstance(data, dict):
            raise StoreUnavailableError("response carried no data")
        return data

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            **self._config.headers,
        }
        if self._config.token is not None:
            headers["Authorization"] = f"Bearer {self._config.token.get_secret_value()}"
        return headers

    @staticmethod
    def _parse_task(item: dict[str, Any]) -> Task:
        room = item.get("room") or {}
        try:
            return Task.model_validate(
                {
                    "id": item["id"],
                    "room_id": room.get("id") or item.get("roomId"),
                    "room_number": room.get("number"),
                    "task_type": item["taskType"],
                    "status": item["status"],
                    "priority": item["priority"],
                    "assigned_to": item.get("assignedTo"),
                    "estimated_time": item["estimatedTime"],
                    "actual_time": item.get("actualTime"),
                    "notes": item.get("notes"),
                    "created_at": item["createdAt"],
                    "completed_at": (
                        item.get("completedAt") if item["status"] == "COMPLETED" else None
                    ),
                }
            )
        except (KeyError, ValidationError) as exc:
            raise StoreUnavailableError("malformed task in response") from exc
