from __future__ import annotations

from importlib import import_module as _import_module

_pipeline_module = _import_module(".pipeline", package=__name__)
extract = _pipeline_module.extract

_slot_module = _import_module(".slot", package=__name__)
ExtractionSlot = _slot_module.ExtractionSlot

_formats_module = _import_module(".formats", package=__name__)
SourceFormat = _formats_module.SourceFormat

_types_module = _import_module(".types", package=__name__)
ColumnDef = _types_module.ColumnDef
ExtractionResult = _types_module.ExtractionResult
OcrProgress = _types_module.OcrProgress
SourceFile = _types_module.SourceFile

__all__: list[str] = [
    "extract",
    "ExtractionSlot",
    "SourceFormat",
    "ColumnDef",
    "ExtractionResult",
    "OcrProgress",
    "SourceFile",
]
