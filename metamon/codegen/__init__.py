"""Emit framework modules from parsed units.

Each supported target has one :class:`TargetEmitter`, selected with
:func:`get_emitter`. :func:`compile_source` runs the whole single-unit
pipeline: parse, validate, emit.

Examples
--------
>>> from metamon.codegen import compile_source
>>> unit = compile_source("---\\ntarget: svelte\\n---\\n<template><p>hi</p></template>\\n")
>>> unit.result.exports
('default',)
"""

from .compiler import CompiledUnit, compile_source, output_path_for
from .emitter import (
    EMITTERS,
    CompilationResult,
    GeneratedModule,
    TargetEmitter,
    extract_runtime_section,
    get_emitter,
)
from .profiles import PROFILES, TargetProfile

__all__ = [
    "EMITTERS",
    "PROFILES",
    "CompilationResult",
    "CompiledUnit",
    "GeneratedModule",
    "TargetEmitter",
    "TargetProfile",
    "compile_source",
    "extract_runtime_section",
    "get_emitter",
    "output_path_for",
]
