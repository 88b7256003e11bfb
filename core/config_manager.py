"""
Configuration Manager
=====================
Centralized configuration for Char Yield Studio.

Single source of truth for:
- Spreadsheet column labels and accepted header aliases
- Default sample naming
- User-facing validation and import messages
- Guidance overlay suppression (owned by the caller, never read from storage)

Configurations are pydantic models so that a bad JSON config fails on load
with a clear message instead of producing an unreadable export later.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ErrorKind

# Excel rejects these in sheet titles
_SHEET_NAME_FORBIDDEN = set('[]:*?/\\')
_SHEET_NAME_MAX = 31


class ColumnLabels(BaseModel):
    """Spreadsheet header labels, one per record field."""
    model_config = ConfigDict(extra='forbid')

    name: str = "Sample Name"
    crucible_number: str = "Crucible Number"
    crucible_weight: str = "Crucible Weight"
    sample_weight: str = "Sample Weight"
    ash_weight: str = "Ash Weight"
    yield_percent: str = "Char Yield"

    @field_validator('*')
    @classmethod
    def label_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("column label must not be empty")
        return v

    @model_validator(mode='after')
    def labels_unique(self) -> 'ColumnLabels':
        labels = list(self.as_dict().values())
        if len(set(labels)) != len(labels):
            raise ValueError(f"column labels must be unique: {labels}")
        return self

    def as_dict(self) -> Dict[str, str]:
        """Field key -> label, in export column order."""
        return self.model_dump()

    @classmethod
    def japanese(cls) -> 'ColumnLabels':
        return cls(
            name="サンプル名",
            crucible_number="るつぼ番号",
            crucible_weight="るつぼ重量",
            sample_weight="サンプル重量",
            ash_weight="灰化後重量",
            yield_percent="チャー収率",
        )


class ValidationMessages(BaseModel):
    """User-facing messages keyed by error kind."""
    model_config = ConfigDict(extra='forbid')

    non_numeric_input: str = "All input values must be numeric."
    invalid_ash_weight: str = "Ash weight must be greater than crucible weight."
    invalid_sample_weight: str = "Sample weight must be greater than 0."
    malformed_file: str = "The file could not be read as a sample table."
    index_out_of_range: str = "No sample exists at that position."
    unknown_field: str = "That field cannot be edited."
    unsupported_format: str = "Export format must be xlsx or csv."

    def for_kind(self, kind: ErrorKind) -> str:
        return getattr(self, kind.value)

    @classmethod
    def japanese(cls) -> 'ValidationMessages':
        return cls(
            non_numeric_input="すべての入力値は数値である必要があります。",
            invalid_ash_weight="灰化後重量はるつぼ重量より大きい必要があります。",
            invalid_sample_weight="サンプル重量は0より大きい必要があります。",
            malformed_file="ファイルを読み込めませんでした。",
            index_out_of_range="指定されたサンプルは存在しません。",
            unknown_field="この項目は編集できません。",
            unsupported_format="エクスポート形式はxlsxまたはcsvのみです。",
        )


class CalculatorConfig(BaseModel):
    """
    Complete calculator configuration.

    Attributes:
        default_name_prefix: Prefix for generated sample names ("Sample 3")
        sheet_name: Title of the exported worksheet
        column_labels: Header labels written on export and read on import
        column_aliases: Alternate header label sets accepted on import
        messages: User-facing error messages
        suppress_guidance: Caller-provided flag hiding the help overlay
        initial_records: Number of empty samples a new collection opens with
    """
    model_config = ConfigDict(extra='forbid')

    default_name_prefix: str = "Sample"
    sheet_name: str = "Char Yield Data"
    column_labels: ColumnLabels = Field(default_factory=ColumnLabels)
    column_aliases: List[ColumnLabels] = Field(default_factory=lambda: [ColumnLabels.japanese()])
    messages: ValidationMessages = Field(default_factory=ValidationMessages)
    suppress_guidance: bool = False
    initial_records: int = Field(default=1, ge=0)

    @field_validator('default_name_prefix')
    @classmethod
    def prefix_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("default_name_prefix must not be empty")
        return v

    @field_validator('sheet_name')
    @classmethod
    def valid_sheet_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("sheet_name must not be empty")
        if len(v) > _SHEET_NAME_MAX:
            raise ValueError(f"sheet_name must be at most {_SHEET_NAME_MAX} characters")
        bad = sorted(set(v) & _SHEET_NAME_FORBIDDEN)
        if bad:
            raise ValueError(f"sheet_name contains forbidden characters: {''.join(bad)}")
        return v

    def header_lookup(self) -> Dict[str, str]:
        """Header label -> field key, primary labels taking precedence over aliases."""
        lookup: Dict[str, str] = {}
        for labels in [self.column_labels, *self.column_aliases]:
            for key, label in labels.as_dict().items():
                lookup.setdefault(label, key)
        return lookup


class ConfigManager:
    """
    Centralized configuration management.

    Usage:
        config = ConfigManager.get_default_config()
        config = ConfigManager.load_config('configs/lab_jp.json')
        ConfigManager.save_to_file(config, 'configs/copy.json')
    """

    # Session state keys used by the Streamlit shell
    COLLECTION_KEY = 'sample_collection'
    CONFIG_KEY = 'calculator_config'
    GUIDE_SEEN_KEY = 'guide_seen'

    @staticmethod
    def get_default_config() -> CalculatorConfig:
        return CalculatorConfig()

    @staticmethod
    def get_japanese_config() -> CalculatorConfig:
        """Configuration matching the Japanese lab sheet layout."""
        return CalculatorConfig(
            default_name_prefix="サンプル",
            sheet_name="チャー収率データ",
            column_labels=ColumnLabels.japanese(),
            column_aliases=[ColumnLabels()],
            messages=ValidationMessages.japanese(),
        )

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> CalculatorConfig:
        """
        Build a configuration from a plain dictionary.

        Raises:
            ValueError: If the dictionary does not describe a valid configuration
        """
        try:
            return CalculatorConfig.model_validate(data)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            ]
            raise ValueError("Invalid configuration:\n  " + "\n  ".join(errors)) from e

    @staticmethod
    def load_config(file_path: str) -> CalculatorConfig:
        """
        Load configuration from JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file is not valid JSON or fails validation
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Configuration file is not valid JSON: {file_path}: {e}") from e

        return ConfigManager.from_dict(data)

    @staticmethod
    def save_to_file(config: CalculatorConfig, file_path: str) -> None:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(config.model_dump(), f, indent=2, ensure_ascii=False)

    @staticmethod
    def get_active_config() -> Optional[CalculatorConfig]:
        """Configuration stored in the Streamlit session, if any."""
        import streamlit as st
        return st.session_state.get(ConfigManager.CONFIG_KEY)

    @staticmethod
    def set_active_config(config: CalculatorConfig) -> None:
        import streamlit as st
        st.session_state[ConfigManager.CONFIG_KEY] = config
