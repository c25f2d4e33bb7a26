"""Protocol constants.

Keep these in one place to avoid stringly-typed frame handling.
"""

# Lifecycle methods sent by the engine.
CREATE = "__create__"
DISPOSE = "__dispose__"
ADOPT = "__adopt__"
PATCH = "__patch__"

lifecycle = frozenset((CREATE, DISPOSE, ADOPT, PATCH))

# Envelope members.
ID = "id"
GUID = "guid"
METHOD = "method"
PARAMS = "params"
METADATA = "metadata"
RESULT = "result"
ERROR = "error"

TIMEOUT = "timeout"

# The root object of every session has the empty guid.
ROOT_GUID = ""
