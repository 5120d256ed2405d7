from typing import Any, Dict

JsonObject = Dict[str, Any]
