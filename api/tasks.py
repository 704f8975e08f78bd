"""Tasks endpoint: list/search, create, update, bulk update and delete."""

from src.models.task import Task
from src.models.task_filter import TaskFilter
from src.services import supabase_client
from src.services.grouping import build_subtask_tree
from src.utils.errors import InputValidationError, NotFoundError
from src.utils.http import JSONRequestHandler
from src.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()


def task_payload(task: Task) -> dict:
    return task.model_dump(by_alias=True, mode="json")


def _id_list(body: dict) -> list[str]:
    ids = body.get("ids")
    if ids is None:
        return []
    if not isinstance(ids, list) or not all(isinstance(value, str) for value in ids):
        raise InputValidationError("ids must be a list of task IDs")
    return ids


class handler(JSONRequestHandler):
    """Vercel serverless function handler for /api/tasks."""

    def do_GET(self):
        """List tasks (`?id=` for one task, `?tree=true` for the nested view)."""
        query = self._query()

        async def action():
            if query.get("id"):
                task = await supabase_client.get_task(query["id"])
                if task is None:
                    raise NotFoundError(f"Task not found: {query['id']}")
                return 200, task_payload(task)

            criteria = TaskFilter.from_query_params(query)
            tasks = await supabase_client.list_tasks(criteria, with_category=query.get("withCategory") == "true")
            if query.get("tree") == "true":
                tasks = build_subtask_tree(tasks)
            return 200, [task_payload(task) for task in tasks]

        self._dispatch("list tasks", action)

    def do_POST(self):
        """Create a task."""
        async def action():
            body = self._read_json()
            created = await supabase_client.create_task(body)
            return 201, task_payload(created)

        self._dispatch("create task", action)

    def do_PUT(self):
        """Update one task (`?id=`), or bulk update by `ids` in the body or by query criteria."""
        query = self._query()

        async def action():
            body = dict(self._read_json())
            if query.get("id"):
                updated = await supabase_client.update_task(query["id"], body)
                return 200, task_payload(updated)

            ids = _id_list(body)
            body.pop("ids", None)
            criteria = None if ids else TaskFilter.from_query_params(query)
            updated = await supabase_client.bulk_update_tasks(body, ids=ids or None, criteria=criteria)
            return 200, [task_payload(task) for task in updated]

        self._dispatch("update tasks", action)

    def do_DELETE(self):
        """Delete one task (`?id=`), the `ids` in the body, or every task matching the query."""
        query = self._query()

        async def action():
            if query.get("id"):
                await supabase_client.delete_task(query["id"])
                return 204, None

            ids = _id_list(self._read_json())
            criteria = None if ids else TaskFilter.from_query_params(query)
            deleted = await supabase_client.delete_tasks(ids=ids or None, criteria=criteria)
            return 200, {"deleted": deleted}

        self._dispatch("delete tasks", action)
