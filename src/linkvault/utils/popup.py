"""
HTML returned to the OAuth popup window.

The page reports the outcome to the window that opened it and closes.
It never carries tokens; the opener re-reads connection status from the API.
"""

import html
import json


def _script_json(value: object) -> str:
    """JSON that is safe to inline inside a <script> element."""
    return (
        json.dumps(value)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def get_popup_callback_html(
    platform: str,
    app_origin: str,
    success: bool,
    error: str | None = None,
) -> str:
    """Generate the popup page for a finished connect attempt.

    Args:
        platform: Provider id reported to the opener
        app_origin: Only a window on this origin receives the message
        success: Whether the account was connected
        error: Client-safe failure reason

    Returns:
        HTML string for the OAuth callback page
    """
    message: dict[str, object] = {"success": success, "platform": platform}
    if error:
        message["error"] = error

    if success:
        text = f"Connected {platform} successfully. You can close this window."
    else:
        text = f"Could not connect {platform}: {error or 'unknown error'}"

    return f"""<!DOCTYPE html>
<html>
<head>
    <title>{html.escape(platform)} connection</title>
</head>
<body>
    <p>{html.escape(text)}</p>
    <script>
        (function () {{
            var message = {_script_json(message)};
            if (window.opener) {{
                window.opener.postMessage(message, {_script_json(app_origin)});
            }}
            window.close();
        }})();
    </script>
</body>
</html>
"""
