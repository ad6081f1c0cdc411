"""MCP tool definitions wrapping the jot history.

Each tool call is one full session: load the history, apply one operation,
save it back.
"""

from __future__ import annotations

from typing import Any

from .config import ProjectConfig
from .history import (
    HistoryLoadError,
    HistoryOrderError,
    HistorySaveError,
    JotError,
    JotIndexError,
)
from .models import Jot, JotSet, JotState, parse_date
from .store import load_or_create, save_history

STATE_ENUM = [s.cli_name for s in JotState]


def make_tools(config: ProjectConfig) -> dict[str, dict]:
    """Create MCP tool definitions for the jot history.

    Returns:
        Dict mapping tool names to their definitions.
    """

    tools = {}

    # ========== jot_view ==========
    tools["jot_view"] = {
        "name": "jot_view",
        "description": "Show the current jot set, or the set whose interval contains a date, optionally filtered by state.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "date": {
                    "type": "string",
                    "description": "Date to look up (YYYY-MM-DD); defaults to the current set",
                },
                "states": {
                    "type": "array",
                    "items": {"type": "string", "enum": STATE_ENUM},
                    "description": "Only include jots in these states (empty = all)",
                },
            },
        },
    }

    # ========== jot_history ==========
    tools["jot_history"] = {
        "name": "jot_history",
        "description": "List the date interval of every set in the history, oldest first.",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    }

    # ========== jot_new ==========
    tools["jot_new"] = {
        "name": "jot_new",
        "description": "Add a jot to the current set.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "jot": {
                    "type": "string",
                    "description": "Jot text",
                },
                "state": {
                    "type": "string",
                    "enum": STATE_ENUM,
                    "description": "Jot state (default: not-started)",
                },
            },
            "required": ["jot"],
        },
    }

    # ========== jot_update ==========
    tools["jot_update"] = {
        "name": "jot_update",
        "description": "Replace the jot at a position in the current set. Fields left out keep their value.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "index": {
                    "type": "integer",
                    "description": "Position of the jot in the current set (0-based, as listed by jot_view)",
                },
                "jot": {
                    "type": "string",
                    "description": "New jot text",
                },
                "state": {
                    "type": "string",
                    "enum": STATE_ENUM,
                    "description": "New jot state",
                },
            },
            "required": ["index"],
        },
    }

    # ========== jot_roll ==========
    tools["jot_roll"] = {
        "name": "jot_roll",
        "description": "Close the current set and start a new one carrying forward every unfinished jot.",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    }

    return tools


def _set_result(jot_set: JotSet) -> dict[str, Any]:
    return {
        "interval": jot_set.interval.to_dict(),
        "jots": [j.to_dict() for j in jot_set.jots],
        "text": jot_set.render(),
    }


async def execute_tool(config: ProjectConfig, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Execute a jot tool and return the result.

    Args:
        config: Project configuration locating the history file
        name: Tool name
        arguments: Tool arguments

    Returns:
        Result dict with success status and data or error
    """
    path = config.get_history_path()

    try:
        history = load_or_create(path)

        if name == "jot_view":
            if arguments.get("date"):
                jot_set = history.find_by_date(parse_date(arguments["date"]))
                if jot_set is None:
                    return {
                        "success": True,
                        "found": False,
                        "message": "No jotset found for date",
                    }
            else:
                jot_set = history.current()
            states = [JotState.from_cli(s) for s in arguments.get("states") or []]
            return {
                "success": True,
                "found": True,
                **_set_result(jot_set.filter_by_states(states)),
            }

        elif name == "jot_history":
            intervals = history.date_intervals()
            return {
                "success": True,
                "count": len(intervals),
                "intervals": [i.to_dict() for i in intervals],
                "text": history.render(),
            }

        elif name == "jot_new":
            state = JotState.from_cli(arguments.get("state") or JotState.NOT_STARTED.cli_name)
            jot = Jot(content=arguments["jot"], state=state)
            history.insert(jot)
            config.run_hook("post_insert", jot)
            save_history(history, path, timeout=config.lock_timeout)
            return {
                "success": True,
                "jot": jot.to_dict(),
                "message": f"Added {jot}",
            }

        elif name == "jot_update":
            index = arguments["index"]
            jots = history.current().jots
            if not isinstance(index, int) or not 0 <= index < len(jots):
                raise JotIndexError(f"No jot at index {index}; current set has {len(jots)} jots")
            existing = jots[index]
            content = arguments.get("jot", existing.content)
            state = JotState.from_cli(arguments["state"]) if arguments.get("state") else existing.state
            updated = Jot(content=content, state=state)
            history.replace_jot(updated, index)
            save_history(history, path, timeout=config.lock_timeout)
            return {
                "success": True,
                "index": index,
                "jot": updated.to_dict(),
                "message": f"Updated {updated}",
            }

        elif name == "jot_roll":
            new_set = history.roll()
            config.run_hook("post_roll", history)
            save_history(history, path, timeout=config.lock_timeout)
            return {
                "success": True,
                "sets": len(history),
                **_set_result(new_set),
            }

        else:
            return {
                "success": False,
                "error": f"Unknown tool: {name}",
                "error_type": "unknown_tool",
            }

    except JotIndexError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "index_out_of_range",
            "suggestion": "Use jot_view to list the current set and its positions.",
        }

    except HistoryLoadError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "load_error",
        }

    except HistorySaveError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "save_error",
            "suggestion": "The change was not saved.",
        }

    except HistoryOrderError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "order_error",
        }

    except JotError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "jot_error",
        }

    except (KeyError, ValueError) as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "invalid_arguments",
        }
