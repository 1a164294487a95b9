"""HTML page rendering for the configuration form."""

from __future__ import annotations

import html
import json
from textwrap import dedent
from typing import Any, Mapping

from .config import DEFAULT_LOCALE, Settings


CONFIG_TEMPLATE = dedent(
    """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>__APP_NAME__ · Configuration</title>
    <style>
        :root {
            color-scheme: dark;
            font-family: 'Inter', 'Segoe UI', system-ui, -apple-system, sans-serif;
            --surface: #141414;
            --text-primary: #f5f5f5;
            --text-muted: #a6a6a6;
            --outline: #2b2b2b;
            background: #000000;
            color: var(--text-primary);
        }
        * {
            box-sizing: border-box;
        }
        body {
            margin: 0;
            min-height: 100vh;
        }
        main {
            max-width: 560px;
            margin: 0 auto;
            padding: 3rem 1.5rem 4rem;
        }
        h1 {
            text-align: center;
            margin-bottom: 0.5rem;
        }
        p.lead {
            text-align: center;
            color: var(--text-muted);
            margin-bottom: 2rem;
        }
        form {
            display: grid;
            gap: 1rem;
            background: var(--surface);
            border: 1px solid var(--outline);
            border-radius: 12px;
            padding: 1.5rem;
        }
        label {
            display: grid;
            gap: 0.35rem;
            font-size: 0.95rem;
        }
        input {
            padding: 0.6rem 0.75rem;
            border-radius: 8px;
            border: 1px solid var(--outline);
            background: #090909;
            color: inherit;
        }
        button, a.install {
            padding: 0.7rem 1rem;
            border-radius: 8px;
            border: none;
            background: #f0f0f0;
            color: #050505;
            font-weight: 600;
            text-align: center;
            text-decoration: none;
            cursor: pointer;
        }
        .note {
            color: var(--text-muted);
            font-size: 0.85rem;
        }
        #install-links {
            display: none;
            gap: 0.75rem;
            margin-top: 1.5rem;
        }
        #install-links.ready {
            display: grid;
        }
        code {
            word-break: break-all;
        }
    </style>
</head>
<body>
    <main>
        <h1>__APP_NAME__</h1>
        <p class="lead">Personalized movie &amp; series picks via Gemini, using your Trakt history.</p>
        <form id="config-form">
            <label>Gemini API Key
                <input type="password" name="geminiKey" autocomplete="off" />
            </label>
            <label>Trakt Client ID
                <input type="text" name="traktClientId" autocomplete="off" />
            </label>
            <label>Trakt Username
                <input type="text" name="traktUser" autocomplete="off" />
            </label>
            <label>Preferred country (e.g. IN, US)
                <input type="text" name="locale" maxlength="8" />
            </label>
            <p class="note" id="env-note"></p>
            <button type="submit">Generate install link</button>
        </form>
        <section id="install-links">
            <a class="install" id="stremio-link" href="#">Install in Stremio</a>
            <code id="manifest-url"></code>
        </section>
    </main>
    <script>
        (() => {
            const defaults = __DEFAULTS_JSON__;
            const form = document.getElementById('config-form');
            const links = document.getElementById('install-links');
            const stremioLink = document.getElementById('stremio-link');
            const manifestUrl = document.getElementById('manifest-url');

            for (const [key, value] of Object.entries(defaults.values)) {
                const input = form.elements.namedItem(key);
                if (input && value) {
                    input.value = value;
                }
            }
            if (defaults.environmentConfigured) {
                document.getElementById('env-note').textContent =
                    'This server is configured from its environment; blank fields are fine.';
            }

            form.addEventListener('submit', (event) => {
                event.preventDefault();
                const config = {};
                for (const element of form.elements) {
                    if (element.name && element.value.trim()) {
                        config[element.name] = element.value.trim();
                    }
                }
                const segment = encodeURIComponent(JSON.stringify(config));
                const url = `${window.location.origin}/${segment}/manifest.json`;
                manifestUrl.textContent = url;
                stremioLink.href = url.replace(/^https?:/, 'stremio:');
                links.classList.add('ready');
            });
        })();
    </script>
</body>
</html>
    """
)

_FORM_KEYS = ("geminiKey", "traktClientId", "traktUser", "locale")


def render_config_page(
    settings: Settings, *, current: Mapping[str, Any] | None = None
) -> str:
    """Return the full HTML for the `/configure` page."""

    values: dict[str, str] = {key: "" for key in _FORM_KEYS}
    values["locale"] = settings.preferred_locale or DEFAULT_LOCALE
    for key, value in (current or {}).items():
        if key in values and isinstance(value, str):
            values[key] = value

    defaults = {
        "values": values,
        "environmentConfigured": settings.fully_configured,
    }
    defaults_json = json.dumps(defaults).replace("</", "<\\/")

    page = CONFIG_TEMPLATE
    replacements = {
        "__APP_NAME__": html.escape(settings.app_name),
        "__DEFAULTS_JSON__": defaults_json,
    }
    for placeholder, value in replacements.items():
        page = page.replace(placeholder, value)
    return page
