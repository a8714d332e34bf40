# flowhub/structural/vocabulary.py
"""
Step-kind vocabulary and node shape classification.

A node is submitted in one of two shapes:
  - wrapped: `type` is an editor wrapper (moduleNode/groupNode/noteNode) and
    the step kind lives at `data.moduleType`
  - flat:    `type` names the step kind directly

`classify_node` is the only place that probes a raw node for its shape.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class StepKind(str, Enum):
    # navigation / page
    OPEN_PAGE = "open_page"
    CLOSE_PAGE = "close_page"
    REFRESH_PAGE = "refresh_page"
    GO_BACK = "go_back"
    GO_FORWARD = "go_forward"
    HANDLE_DIALOG = "handle_dialog"
    SCROLL_PAGE = "scroll_page"
    SCREENSHOT = "screenshot"
    # element interaction
    CLICK_ELEMENT = "click_element"
    INPUT_TEXT = "input_text"
    GET_ELEMENT_INFO = "get_element_info"
    WAIT = "wait"
    WAIT_ELEMENT = "wait_element"
    SELECT_DROPDOWN = "select_dropdown"
    SET_CHECKBOX = "set_checkbox"
    DRAG_ELEMENT = "drag_element"
    UPLOAD_FILE = "upload_file"
    HOVER_ELEMENT = "hover_element"
    # data
    SET_VARIABLE = "set_variable"
    JSON_PARSE = "json_parse"
    BASE64 = "base64"
    RANDOM_NUMBER = "random_number"
    GET_TIME = "get_time"
    DOWNLOAD_FILE = "download_file"
    SAVE_IMAGE = "save_image"
    READ_EXCEL = "read_excel"
    # strings
    STRING_CONCAT = "string_concat"
    REGEX_EXTRACT = "regex_extract"
    STRING_REPLACE = "string_replace"
    STRING_SPLIT = "string_split"
    STRING_JOIN = "string_join"
    STRING_TRIM = "string_trim"
    STRING_CASE = "string_case"
    STRING_SUBSTRING = "string_substring"
    # lists / dicts
    LIST_OPERATION = "list_operation"
    LIST_GET = "list_get"
    LIST_LENGTH = "list_length"
    DICT_OPERATION = "dict_operation"
    DICT_GET = "dict_get"
    DICT_KEYS = "dict_keys"
    # tables
    TABLE_ADD_ROW = "table_add_row"
    TABLE_ADD_COLUMN = "table_add_column"
    TABLE_SET_CELL = "table_set_cell"
    TABLE_GET_CELL = "table_get_cell"
    TABLE_DELETE_ROW = "table_delete_row"
    TABLE_CLEAR = "table_clear"
    TABLE_EXPORT = "table_export"
    # database
    DB_CONNECT = "db_connect"
    DB_QUERY = "db_query"
    DB_EXECUTE = "db_execute"
    DB_INSERT = "db_insert"
    DB_UPDATE = "db_update"
    DB_DELETE = "db_delete"
    DB_CLOSE = "db_close"
    # network / AI
    API_REQUEST = "api_request"
    SEND_EMAIL = "send_email"
    AI_CHAT = "ai_chat"
    AI_VISION = "ai_vision"
    OCR_CAPTCHA = "ocr_captcha"
    SLIDER_CAPTCHA = "slider_captcha"
    # control flow
    CONDITION = "condition"
    LOOP = "loop"
    FOREACH = "foreach"
    BREAK_LOOP = "break_loop"
    CONTINUE_LOOP = "continue_loop"
    SCHEDULED_TASK = "scheduled_task"
    SUBFLOW = "subflow"
    # I/O and scripting
    PRINT_LOG = "print_log"
    PLAY_SOUND = "play_sound"
    PLAY_MUSIC = "play_music"
    INPUT_PROMPT = "input_prompt"
    TEXT_TO_SPEECH = "text_to_speech"
    JS_SCRIPT = "js_script"
    SET_CLIPBOARD = "set_clipboard"
    GET_CLIPBOARD = "get_clipboard"
    KEYBOARD_ACTION = "keyboard_action"
    REAL_MOUSE_SCROLL = "real_mouse_scroll"
    # grouping / annotation
    GROUP = "group"
    NOTE = "note"

    @classmethod
    def parse(cls, value: str) -> Optional["StepKind"]:
        """Return the member for `value`, or None when it is not a known step kind."""
        try:
            return cls(value)
        except ValueError:
            return None


class WrapperKind(str, Enum):
    """Editor node types that wrap a step instead of naming one."""
    MODULE_NODE = "moduleNode"
    GROUP_NODE = "groupNode"
    NOTE_NODE = "noteNode"

    @classmethod
    def parse(cls, value: str) -> Optional["WrapperKind"]:
        try:
            return cls(value)
        except ValueError:
            return None


# ---------- Node shapes ----------

@dataclass(frozen=True)
class WrappedNode:
    """`data.moduleType` carries the step kind; `wrapper` is the raw `type` (may be anything)."""
    node_id: str
    step_kind: str
    wrapper: Any
    settings: Dict[str, Any]


@dataclass(frozen=True)
class FlatNode:
    """`type` is the step kind."""
    node_id: str
    step_kind: str
    settings: Dict[str, Any]


NodeShape = Union[WrappedNode, FlatNode]


def node_settings(node: Dict[str, Any]) -> Any:
    """Step settings of a raw node: `data`, or the legacy `config` when `data` is absent."""
    data = node.get("data")
    if data is None:
        data = node.get("config")
    return {} if data is None else data


def classify_node(node: Dict[str, Any]) -> Optional[NodeShape]:
    """
    Resolve the shape and effective step kind of a raw node mapping.

    Returns None when no step kind can be resolved (neither a non-empty
    string `data.moduleType` nor a non-empty string `type`). A legacy
    `config.moduleType` does not make a node wrapped.
    """
    settings = node_settings(node)
    node_id = node.get("id")

    data = node.get("data")
    module_type = data.get("moduleType") if isinstance(data, dict) else None
    if module_type:
        if not isinstance(module_type, str):
            return None
        return WrappedNode(node_id=node_id, step_kind=module_type,
                           wrapper=node.get("type"), settings=settings)

    node_type = node.get("type")
    if isinstance(node_type, str) and node_type:
        return FlatNode(node_id=node_id, step_kind=node_type,
                        settings=settings if isinstance(settings, dict) else {})
    return None


def is_known_step(kind: str) -> bool:
    return StepKind.parse(kind) is not None


def is_wrapper(kind: str) -> bool:
    return WrapperKind.parse(kind) is not None
