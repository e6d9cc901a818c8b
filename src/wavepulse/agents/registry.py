"""Declarations of the specialized codebase sub-agents."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SubAgentDefinition:
    name: str
    domain: tuple[str, ...]
    key_files: tuple[str, ...]
    path_patterns: tuple[str, ...]
    expertise: str
    # Class declarations worth calling out as insights when found in a read file.
    landmarks: tuple[str, ...] = field(default=())


SUB_AGENTS: tuple[SubAgentDefinition, ...] = (
    SubAgentDefinition(
        name="BaseAgent",
        domain=("basecomponent", "core", "lifecycle", "infrastructure"),
        key_files=(
            "core/base.component.tsx",
            "core/props.provider.ts",
            "core/event-notifier.ts",
            "core/wm-component-tree.ts",
        ),
        path_patterns=("*/core/*", "*base.component*", "*props.provider*", "*event-notifier*"),
        expertise=(
            "Your expertise: the BaseComponent class and its lifecycle, the PropsProvider "
            "property resolution, the event notification system and the component tree."
        ),
        landmarks=("BaseComponent", "PropsProvider"),
    ),
    SubAgentDefinition(
        name="ComponentAgent",
        domain=("component", "widget", "ui", "rendering"),
        key_files=(
            "components/basic/button/button.tsx",
            "components/basic/label/label.tsx",
            "components/data/list/list.tsx",
            "components/container/panel/panel.tsx",
        ),
        path_patterns=("*/components/*",),
        expertise=(
            "Your expertise: widget components such as WmButton, WmLabel and WmList, their "
            "props, rendering and event handling."
        ),
    ),
    SubAgentDefinition(
        name="StyleAgent",
        domain=("style", "theme", "css", "less", "styling"),
        key_files=(
            "theme/theme.service.ts",
            "theme/rn-stylesheet.transpiler.ts",
            "theme/variables.ts",
            "styles/theme.tsx",
            "styles/theme.variables.ts",
        ),
        path_patterns=("*/theme/*", "*/styles/*", "*stylesheet*"),
        expertise=(
            "Your expertise: theme compilation, CSS and LESS to React Native style "
            "conversion, theme variables and style precedence."
        ),
    ),
    SubAgentDefinition(
        name="StyleDefinitionAgent",
        domain=("styledefinition", "style-definition", "styledef", "class-name", "style-selector"),
        key_files=(
            "theme/components/base-style-definition.ts",
            "theme/components/style-definition.provider.ts",
            "theme/components/basic/button.styledef.ts",
            "theme/components/input/text.styledef.ts",
            "theme/components/container/panel.styledef.ts",
        ),
        path_patterns=("*/theme/components/*.styledef.ts",),
        expertise=(
            "Your expertise: widget style definition files (.styledef.ts), class names, "
            "rnStyleSelector mappings and nested class patterns such as "
            ".app-button-icon .app-icon."
        ),
    ),
    SubAgentDefinition(
        name="ServiceAgent",
        domain=("service", "navigation", "modal", "security", "storage"),
        key_files=(
            "services/navigation.service.ts",
            "services/modal.service.ts",
            "services/security.service.ts",
            "services/storage.service.ts",
            "services/toast.service.ts",
            "core/injector.ts",
        ),
        path_patterns=("*/services/*", "*/core/*.service.ts", "*/core/injector.ts"),
        expertise=(
            "Your expertise: runtime services (navigation, modal, security, storage, toast) "
            "and dependency injection through the injector."
        ),
    ),
    SubAgentDefinition(
        name="BindingAgent",
        domain=("binding", "watch", "watcher", "two-way", "one-way"),
        key_files=("runtime/watcher.ts", "runtime/bind.ex.transformer.ts", "runtime/digest.ts"),
        path_patterns=("*/runtime/watcher*", "*/runtime/bind*", "*/runtime/digest*", "*/transpile/bind*"),
        expertise=(
            "Your expertise: data binding, bind expressions, one-way and two-way binding "
            "and how bindings are re-evaluated."
        ),
    ),
    SubAgentDefinition(
        name="VariableAgent",
        domain=("variable", "livevariable", "servicevariable", "state"),
        key_files=(
            "variables/base-variable.ts",
            "variables/live-variable.ts",
            "variables/service-variable.ts",
            "variables/http.service.ts",
        ),
        path_patterns=("*/variables/*",),
        expertise=(
            "Your expertise: variables and state management, LiveVariable, ServiceVariable, "
            "BaseVariable and the dataSet lifecycle."
        ),
        landmarks=("BaseVariable", "LiveVariable", "ServiceVariable"),
    ),
    SubAgentDefinition(
        name="TranspilerAgent",
        domain=("transpiler", "transpile", "codegen"),
        key_files=("transpile/transpile.ts", "transpile/transpiler.ts", "generator/app.generator.ts"),
        path_patterns=("*/transpile/*", "*/generator/*"),
        expertise=(
            "Your expertise: the transpilation pipeline that turns WaveMaker markup into "
            "React Native JSX."
        ),
    ),
    SubAgentDefinition(
        name="TransformerAgent",
        domain=("transformer", "transform", "html", "jsx"),
        key_files=(
            "transpile/components/basic/button.transformer.ts",
            "transpile/components/data/list.transformer.ts",
            "transpile/components/container/panel.transformer.ts",
        ),
        path_patterns=("*/transpile/components/*.transformer.ts",),
        expertise="Your expertise: per-widget transformers that convert markup elements into JSX.",
    ),
    SubAgentDefinition(
        name="ParserAgent",
        domain=("parser", "parse", "html", "css", "javascript"),
        key_files=("parser/html.parser.ts", "parser/css.parser.ts", "parser/expression.parser.ts"),
        path_patterns=("*/parser/*",),
        expertise="Your expertise: HTML, CSS and expression parsers used by the code generator.",
    ),
    SubAgentDefinition(
        name="FormatterAgent",
        domain=("formatter", "format", "formatting"),
        key_files=("formatter/code.formatter.ts", "formatter/data.formatter.ts"),
        path_patterns=("*/formatter/*",),
        expertise="Your expertise: code formatting of generated output and data formatters.",
    ),
    SubAgentDefinition(
        name="GenerationAgent",
        domain=("generation", "generate", "template", "handlebars"),
        key_files=("generator/app.generator.ts",),
        path_patterns=("*/generator/*", "*/templates/*"),
        expertise="Your expertise: app generation and the handlebars templates behind it.",
    ),
    SubAgentDefinition(
        name="FragmentAgent",
        domain=("fragment", "page", "partial", "prefab"),
        key_files=(
            "fragments/page.fragment.ts",
            "fragments/partial.fragment.ts",
            "fragments/prefab.fragment.ts",
            "core/base-fragment.component.tsx",
        ),
        path_patterns=("*/fragments/*", "*/core/base-fragment*"),
        expertise=(
            "Your expertise: pages, partials and prefabs, the fragment hierarchy and how "
            "fragments communicate."
        ),
        landmarks=("BaseFragment",),
    ),
    SubAgentDefinition(
        name="WatcherAgent",
        domain=("watcher", "watch", "change detection", "digest"),
        key_files=("runtime/watcher.ts", "runtime/digest.ts"),
        path_patterns=("*/runtime/watcher*", "*/runtime/digest*"),
        expertise=(
            "Your expertise: the watch system, change detection, the digest cycle and "
            "watch optimization."
        ),
        landmarks=("Watcher",),
    ),
    SubAgentDefinition(
        name="MemoAgent",
        domain=("memo", "memoization", "optimization", "performance"),
        key_files=("components/utils/memo.tsx", "components/utils/WmMemo.tsx"),
        path_patterns=("*/components/utils/memo*", "*/components/utils/WmMemo*"),
        expertise="Your expertise: memoization, the WmMemo component and render optimization.",
    ),
    SubAgentDefinition(
        name="AppAgent",
        domain=("app", "application", "architecture", "generation", "build"),
        key_files=("app/app.generator.ts", "app/app.config.ts", "app/app.tsx"),
        path_patterns=("*/app/*", "*/generator/*"),
        expertise="Your expertise: application architecture, app configuration and the build flow.",
    ),
)

SUB_AGENTS_BY_NAME: dict[str, SubAgentDefinition] = {d.name: d for d in SUB_AGENTS}

DOMAIN_TO_AGENT: dict[str, str] = {
    "component": "ComponentAgent",
    "service": "ServiceAgent",
    "binding": "BindingAgent",
    "variable": "VariableAgent",
    "style": "StyleAgent",
    "styledefinition": "StyleDefinitionAgent",
    "style-definition": "StyleDefinitionAgent",
    "transpiler": "TranspilerAgent",
    "transformer": "TransformerAgent",
    "parser": "ParserAgent",
    "formatter": "FormatterAgent",
    "generation": "GenerationAgent",
    "fragment": "FragmentAgent",
    "watcher": "WatcherAgent",
    "memo": "MemoAgent",
    "app": "AppAgent",
    "base": "BaseAgent",
}
