"""jot-journal configuration - Python example

Copy to your project root as jot_config.py.

Convention:
- CONFIG dict for static configuration (same structure as TOML)
- hook_post_insert(jot) runs after a jot is added
- hook_post_roll(history) runs after the current set is rolled
"""

from pathlib import Path

# =============================================================================
# Static Configuration (same structure as TOML)
# =============================================================================

CONFIG = {
    "history": {
        "file": "jots/history.json",
        "lock_timeout": 5,
    },
    "logging": {
        "level": "INFO",
    },
}


# =============================================================================
# Hooks
# =============================================================================

def hook_post_roll(history) -> None:
    """Append the closed interval to a plain-text changelog."""
    closed = history.set_at(len(history) - 2)
    done = [j for j in closed.jots if j.is_terminal()]
    with open(Path("jots") / "CHANGELOG.txt", "a", encoding="utf-8") as f:
        f.write(f"{closed.interval}\n")
        for jot in done:
            f.write(f"  - {jot}\n")
