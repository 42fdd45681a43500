from html import escape
from typing import Optional

CLOSE_BUTTON = (
    '<button onclick="window.close()" style="padding: 10px 20px; background: #3498db; '
    'color: white; border: none; border-radius: 5px; cursor: pointer;">Close this window</button>'
)

AUTO_CLOSE_MS = 3000

def error_page(title: str, message: str, details: Optional[str] = None) -> str:
    details_html = f"<p><strong>Details:</strong> {escape(details)}</p>" if details else ""
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>{escape(title)}</title>
  <meta charset="utf-8">
</head>
<body style="font-family: Arial, sans-serif; text-align: center; padding: 50px;">
  <h1 style="color: #e74c3c;">{escape(title)}</h1>
  <p>{escape(message)}</p>
  {details_html}
  {CLOSE_BUTTON}
</body>
</html>
"""

def success_page(external_account_id: Optional[str]) -> str:
    account_html = (
        f'<p style="color: #666;"><strong>Mercado Livre user ID:</strong> {escape(external_account_id)}</p>'
        if external_account_id else ""
    )
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>Connection successful</title>
  <meta charset="utf-8">
</head>
<body style="font-family: Arial, sans-serif; text-align: center; padding: 50px;">
  <h1 style="color: #27ae60;">Connection successful</h1>
  <p>Your Mercado Livre account is now connected.</p>
  {account_html}
  <p style="color: #666;">This window closes automatically. You can return to the dashboard.</p>
  {CLOSE_BUTTON}
  <script>
    setTimeout(function () {{
      try {{ window.close(); }} catch (e) {{}}
    }}, {AUTO_CLOSE_MS});
  </script>
</body>
</html>
"""
