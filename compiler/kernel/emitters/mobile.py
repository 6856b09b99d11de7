"""
Plura Compiler — Mobile Emitter (Expo / React Native)

Pure function of (pages, meta). Each page becomes a screen registered with
a native stack navigator. Layout primitives are View/Text/Pressable/Image,
and video uses expo-av.

Styles go through native_style: properties the native layout engine does
not support are dropped (and logged), the rest are collected into one
StyleSheet per screen keyed by element id.
"""

from __future__ import annotations

import logging

from compiler.kernel.elements import heading_level, home_page, node_kind, walk
from compiler.kernel.emitters.scaffold import (
    GITIGNORE,
    js_string,
    json_file,
    package_name,
    readme,
    render_template,
)
from compiler.kernel.naming import css_identifier, pascal_case, unique_names
from compiler.kernel.styles import native_style, style_literal
from compiler.kernel.types import (
    DEFAULT_BUTTON_LABEL,
    DEFAULT_HREF,
    DEFAULT_LINK_LABEL,
    TARGET_MOBILE,
    ContainerElement,
    ElementNode,
    GeneratedProject,
    LeafElement,
    Page,
    ProjectMeta,
    ProjectMetadata,
)

logger = logging.getLogger(__name__)

FRAMEWORK = "expo"
ENTRY_POINT = "App.tsx"
MANIFEST = "package.json"

INDENT = "  "

RESERVED_STYLE_KEYS = ["screen"]


class MobileEmitter:
    target = TARGET_MOBILE
    framework = FRAMEWORK

    def emit(self, pages: list[Page], meta: ProjectMeta) -> GeneratedProject:
        components = unique_names([pascal_case(p.name) + "Screen" for p in pages])
        routes = unique_names([pascal_case(p.name, fallback="Screen") for p in pages])
        home = home_page(pages)
        initial = routes[pages.index(home)]

        files: dict[str, str] = {}
        files[MANIFEST] = _package_json(meta)
        files["app.json"] = _app_json(meta)
        files["babel.config.js"] = BABEL_CONFIG
        files["tsconfig.json"] = TSCONFIG
        files[".gitignore"] = GITIGNORE["node"]
        files["README.md"] = readme(meta, pages, "Expo", ["npm install", "npx expo start"])
        files[ENTRY_POINT] = APP_TSX
        files["src/styles/theme.ts"] = THEME_TS
        files["src/utils/openLink.ts"] = OPEN_LINK_TS
        files["src/navigation/AppNavigator.tsx"] = render_template(
            NAVIGATOR_TEMPLATE,
            {
                "initial": js_string(initial),
                "screens": [
                    {"component": component, "route": js_string(route), "title": js_string(page.name)}
                    for page, component, route in zip(pages, components, routes)
                ],
            },
        )

        for page, component in zip(pages, components):
            files[f"src/screens/{component}.tsx"] = ScreenWriter(page, component).render()

        return GeneratedProject(
            target=TARGET_MOBILE,
            files=files,
            metadata=ProjectMetadata(framework=FRAMEWORK, entry_point=ENTRY_POINT, manifest=MANIFEST),
        )


class ScreenWriter:
    """Renders one page as a screen component with its own StyleSheet."""

    def __init__(self, page: Page, component: str):
        self.page = page
        self.component = component
        self.style_keys: dict[str, str] = {}
        self.native: dict[str, dict] = {}
        self.used: set[str] = set()

        styled = []
        for node in walk(page.elements):
            style = native_style(node.styles)
            if len(style) < len(node.styles):
                logger.debug(
                    "MobileEmitter: %s dropped %d style(s) on %r",
                    component,
                    len(node.styles) - len(style),
                    node.id,
                )
            if style:
                styled.append(node.id)
                self.native[node.id] = style
        keys = unique_names(RESERVED_STYLE_KEYS + [css_identifier(i) for i in styled])
        self.style_keys = dict(zip(styled, keys[len(RESERVED_STYLE_KEYS) :]))

    def render(self) -> str:
        body = "\n".join(self.render_node(node, 3) for node in self.page.elements)

        rn_imports = {"ScrollView", "StyleSheet"} | {n for n in self.used if n in RN_PRIMITIVES}
        lines = [
            'import React from "react";',
            "import { " + ", ".join(sorted(rn_imports)) + ' } from "react-native";',
        ]
        if "Video" in self.used:
            lines.append('import { ResizeMode, Video } from "expo-av";')
        if "theme" in self.used:
            lines.append('import { theme } from "../styles/theme";')
        if "openLink" in self.used:
            lines.append('import { openLink } from "../utils/openLink";')

        sheet = ["  screen: { flexGrow: 1 },"]
        for node_id, key in self.style_keys.items():
            sheet.append(f"  {key}: {style_literal(self.native[node_id])},")

        return render_template(
            SCREEN_TEMPLATE,
            {
                "imports": "\n".join(lines),
                "component": self.component,
                "body": body,
                "sheet": "\n".join(sheet),
            },
        )

    def render_node(self, node: ElementNode, depth: int) -> str:
        kind = node_kind(node)
        renderer = getattr(self, f"_render_{kind}", self._render_custom)
        return renderer(node, depth)

    # -- helpers --

    def _style(self, node: ElementNode, base: str | None = None) -> str:
        key = self.style_keys.get(node.id)
        own = f"styles.{key}" if key else None
        if base:
            self.used.add("theme")
        if base and own:
            return f" style={{[{base}, {own}]}}"
        if base or own:
            return f" style={{{base or own}}}"
        return ""

    def _use(self, *names: str) -> None:
        self.used.update(names)

    # -- per-kind renderers --

    def _render_container(self, node: ContainerElement, depth: int) -> str:
        self._use("View")
        pad = INDENT * depth
        if not node.children:
            return f"{pad}<View{self._style(node)} />"
        inner = "\n".join(self.render_node(child, depth + 1) for child in node.children)
        return f"{pad}<View{self._style(node)}>\n{inner}\n{pad}</View>"

    def _render_text(self, node: LeafElement, depth: int) -> str:
        self._use("Text")
        text = node.content.inner_text or ""
        return f"{INDENT * depth}<Text{self._style(node, 'theme.text')}>{{{js_string(text)}}}</Text>"

    def _render_heading(self, node: LeafElement, depth: int) -> str:
        self._use("Text")
        level = heading_level(node.content.level)
        text = node.content.inner_text or ""
        style = self._style(node, f"theme.h{level}")
        return f'{INDENT * depth}<Text accessibilityRole="header"{style}>{{{js_string(text)}}}</Text>'

    def _render_button(self, node: LeafElement, depth: int) -> str:
        self._use("Pressable", "Text", "openLink")
        href = node.content.href or DEFAULT_HREF
        label = node.content.inner_text or DEFAULT_BUTTON_LABEL
        pad = INDENT * depth
        return (
            f'{pad}<Pressable accessibilityRole="button"{self._style(node, "theme.button")}'
            f" onPress={{() => openLink({js_string(href)})}}>\n"
            f"{pad}{INDENT}<Text style={{theme.buttonLabel}}>{{{js_string(label)}}}</Text>\n"
            f"{pad}</Pressable>"
        )

    def _render_link(self, node: LeafElement, depth: int) -> str:
        self._use("Text", "openLink")
        href = node.content.href or DEFAULT_HREF
        label = node.content.inner_text or DEFAULT_LINK_LABEL
        return (
            f'{INDENT * depth}<Text accessibilityRole="link"{self._style(node, "theme.link")}'
            f" onPress={{() => openLink({js_string(href)})}}>{{{js_string(label)}}}</Text>"
        )

    def _render_image(self, node: LeafElement, depth: int) -> str:
        self._use("Image")
        src = node.content.src or ""
        alt = node.content.alt or ""
        return (
            f"{INDENT * depth}<Image source={{{{ uri: {js_string(src)} }}}}"
            f" accessibilityLabel={{{js_string(alt)}}}{self._style(node, 'theme.image')} />"
        )

    def _render_video(self, node: LeafElement, depth: int) -> str:
        self._use("Video")
        src = node.content.src or ""
        return (
            f"{INDENT * depth}<Video source={{{{ uri: {js_string(src)} }}}} useNativeControls"
            f" resizeMode={{ResizeMode.CONTAIN}}{self._style(node, 'theme.video')} />"
        )

    def _render_divider(self, node: LeafElement, depth: int) -> str:
        self._use("View")
        return f"{INDENT * depth}<View{self._style(node, 'theme.divider')} />"

    def _render_custom(self, node: LeafElement, depth: int) -> str:
        self._use("Text")
        text = node.content.inner_text or ""
        return f"{INDENT * depth}<Text{self._style(node, 'theme.text')}>{{{js_string(text)}}}</Text>"


RN_PRIMITIVES = {"View", "Text", "Pressable", "Image"}


# ---------------------------------------------------------------------------
# Scaffolding
# ---------------------------------------------------------------------------


def _package_json(meta: ProjectMeta) -> str:
    return json_file(
        {
            "name": package_name(meta, "plura-app"),
            "version": "1.0.0",
            "main": "node_modules/expo/AppEntry.js",
            "private": True,
            "scripts": {
                "start": "expo start",
                "android": "expo start --android",
                "ios": "expo start --ios",
                "web": "expo start --web",
            },
            "dependencies": {
                "@react-navigation/native": "^6.1.17",
                "@react-navigation/native-stack": "^6.9.26",
                "expo": "~51.0.0",
                "expo-av": "~14.0.7",
                "expo-status-bar": "~1.12.1",
                "react": "18.2.0",
                "react-native": "0.74.5",
                "react-native-safe-area-context": "4.10.5",
                "react-native-screens": "3.31.1",
            },
            "devDependencies": {
                "@babel/core": "^7.24.0",
                "@types/react": "~18.2.79",
                "typescript": "~5.3.3",
            },
        }
    )


def _app_json(meta: ProjectMeta) -> str:
    slug = package_name(meta, "plura-app")
    return json_file(
        {
            "expo": {
                "name": meta.name or "Plura App",
                "slug": slug,
                "version": "1.0.0",
                "orientation": "portrait",
                "userInterfaceStyle": "light",
                "ios": {"supportsTablet": True},
            }
        }
    )


TSCONFIG = """{
  "extends": "expo/tsconfig.base",
  "compilerOptions": {
    "strict": true
  }
}
"""

BABEL_CONFIG = """module.exports = function (api) {
  api.cache(true);
  return {
    presets: ["babel-preset-expo"],
  };
};
"""

APP_TSX = """import { NavigationContainer } from "@react-navigation/native";
import { StatusBar } from "expo-status-bar";
import AppNavigator from "./src/navigation/AppNavigator";

export default function App() {
  return (
    <NavigationContainer>
      <AppNavigator />
      <StatusBar style="auto" />
    </NavigationContainer>
  );
}
"""

NAVIGATOR_TEMPLATE = """import { createNativeStackNavigator } from "@react-navigation/native-stack";
<%#screens%>
import <%& component %> from "../screens/<%& component %>";
<%/screens%>

const Stack = createNativeStackNavigator();

export default function AppNavigator() {
  return (
    <Stack.Navigator initialRouteName={<%& initial %>}>
<%#screens%>
      <Stack.Screen name={<%& route %>} component={<%& component %>} options={{ title: <%& title %> }} />
<%/screens%>
    </Stack.Navigator>
  );
}
"""

SCREEN_TEMPLATE = """<%& imports %>

export default function <%& component %>() {
  return (
    <ScrollView contentContainerStyle={styles.screen}>
<%& body %>
    </ScrollView>
  );
}

const styles = StyleSheet.create({
<%& sheet %>
});
"""

THEME_TS = """import { StyleSheet } from "react-native";

export const theme = StyleSheet.create({
  text: { fontSize: 16, lineHeight: 24, color: "#111827" },
  h1: { fontSize: 32, fontWeight: "700", marginBottom: 12 },
  h2: { fontSize: 26, fontWeight: "700", marginBottom: 10 },
  h3: { fontSize: 22, fontWeight: "600", marginBottom: 8 },
  h4: { fontSize: 19, fontWeight: "600", marginBottom: 6 },
  h5: { fontSize: 17, fontWeight: "600", marginBottom: 4 },
  h6: { fontSize: 15, fontWeight: "600", marginBottom: 4 },
  button: { paddingVertical: 12, paddingHorizontal: 20, borderRadius: 6, backgroundColor: "#2563eb", alignItems: "center" },
  buttonLabel: { color: "#ffffff", fontSize: 16, fontWeight: "600" },
  link: { color: "#2563eb", textDecorationLine: "underline" },
  image: { width: "100%", height: 200 },
  video: { width: "100%", height: 220 },
  divider: { height: StyleSheet.hairlineWidth, backgroundColor: "#e5e7eb", marginVertical: 12 },
});
"""

OPEN_LINK_TS = """import { Linking } from "react-native";

export function openLink(href: string) {
  if (!href || href.startsWith("#")) {
    return;
  }
  Linking.openURL(href);
}
"""
