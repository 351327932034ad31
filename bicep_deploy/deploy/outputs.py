"""Publishing deployment outputs as step outputs."""
from typing import Any, Dict, Optional

from ..actions.core import set_output, set_secret


def set_create_outputs(config, outputs: Optional[Dict[str, Any]]) -> None:
    """Write each template output as a step output.

    Outputs named in ``config.masked_outputs`` (case-insensitive) are also
    registered as secrets so they are redacted from later log lines.
    """
    if not outputs:
        return

    masked = {name.lower() for name in config.masked_outputs}
    for key, output in outputs.items():
        value = output.get("value") if isinstance(output, dict) else output
        set_output(key, value)
        if key.lower() in masked:
            set_secret(value)
