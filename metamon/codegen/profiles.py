"""Per-target settings consumed by :class:`~metamon.codegen.emitter.TargetEmitter`.

Targets differ in file extension, framework imports, template flavour, and in
how component state is read and written. Everything else about emission is
shared, so each target is a :class:`TargetProfile` row rather than a class.
"""

from __future__ import annotations

import dataclasses as dc
import types
import typing as typ

from .translate import MarkupDialect


@dc.dataclass(frozen=True, slots=True)
class TargetProfile:
    """Emission settings for one target.

    Attributes
    ----------
    target : str
        Frontmatter value selecting this profile.
    file_extension : str
        Extension of the emitted module.
    template_name : str
        Jinja template holding the target's emission macros.
    framework_imports : tuple[str, ...]
        Import lines every emitted module starts with.
    dialect : MarkupDialect
        Template flavour for markup translation.
    read_format : str
        How state is read in script code; ``{name}`` is the variable name.
    markup_read_format : str
        How state is read inside markup.
    write_format : str
        How state is written; ``{name}``, ``{setter}`` and ``{value}`` are
        substituted.
    """

    target: str
    file_extension: str
    template_name: str
    framework_imports: tuple[str, ...]
    dialect: MarkupDialect
    read_format: str = "{name}"
    markup_read_format: str = "{name}"
    write_format: str = "{setter}({{value}})"


PROFILES: typ.Final[typ.Mapping[str, TargetProfile]] = types.MappingProxyType(
    {
        "reactjs": TargetProfile(
            target="reactjs",
            file_extension=".jsx",
            template_name="reactjs.jinja",
            framework_imports=(
                "import React, { useState, useEffect, useCallback, useMemo } from 'react';",
            ),
            dialect=MarkupDialect.JSX,
        ),
        "vue": TargetProfile(
            target="vue",
            file_extension=".vue",
            template_name="vue.jinja",
            framework_imports=(
                "import { ref, computed, watch, onUnmounted } from 'vue';",
            ),
            dialect=MarkupDialect.VUE,
            read_format="{name}.value",
            write_format="{name}.value = {{value}}",
        ),
        "solid": TargetProfile(
            target="solid",
            file_extension=".jsx",
            template_name="solid.jinja",
            framework_imports=(
                "import { createSignal, createMemo, onCleanup, Show, For } from 'solid-js';",
            ),
            dialect=MarkupDialect.SOLID,
            read_format="{name}()",
            markup_read_format="{name}()",
        ),
        "svelte": TargetProfile(
            target="svelte",
            file_extension=".svelte",
            template_name="svelte.jinja",
            framework_imports=("import { onDestroy } from 'svelte';",),
            dialect=MarkupDialect.SVELTE,
            write_format="{name} = {{value}}",
        ),
    }
)


__all__ = ["PROFILES", "TargetProfile"]
