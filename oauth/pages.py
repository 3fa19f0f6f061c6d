"""HTML landing pages for the browser-hosted OAuth callback"""

from html import escape

from .models import CallbackOutcome

_SUCCESS_PAGE = """
<html>
<head><title>Connected</title></head>
<body style="font-family:sans-serif;display:flex;align-items:center;justify-content:center;height:100vh;margin:0;background:#0a0a0a;color:#fff;">
    <div style="text-align:center">
        <div style="font-size:48px;margin-bottom:16px">&#10003;</div>
        <h2 style="margin:0 0 8px">{title}</h2>
        <p style="color:#888;margin:0">{message}</p>
        <script>setTimeout(() => window.close(), 2000);</script>
    </div>
</body>
</html>
"""

_FAILURE_PAGE = """
<html>
<head><title>Authentication failed</title></head>
<body style="font-family:sans-serif;padding:2rem">
    <h2>{title}</h2>
    <p>{message}</p>
    {detail}
</body>
</html>
"""


def render_callback_page(outcome: CallbackOutcome) -> str:
    """Render the page shown in the browser tab the provider redirected

    Provider-supplied text (error codes, token endpoint bodies) is escaped.
    """
    if outcome.ok:
        return _SUCCESS_PAGE.format(title=escape(outcome.title), message=escape(outcome.message))

    detail = f"<pre>{escape(outcome.detail)}</pre>" if outcome.detail else ""
    return _FAILURE_PAGE.format(
        title=escape(outcome.title),
        message=escape(outcome.message),
        detail=detail,
    )
