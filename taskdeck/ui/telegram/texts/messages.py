WELCOME = (
    "Welcome to taskdeck.\n"
    "Sign in with /login or create an account with /signup."
)
MENU = "Choose an action."
SIGNED_IN_REQUIRED = "Please sign in first: /login or /signup."
CANCELLED = "Cancelled."

ASK_EMAIL = "Email address?"
ASK_PASSWORD = "Password? (at least 6 characters)"
ASK_DISPLAY_NAME = "Display name?"
ASK_RESET_EMAIL = "Email address of the account to reset?"
ASK_RESET_TOKEN = "Send the reset token."
ASK_NEW_PASSWORD = "New password? (at least 6 characters)"

ASK_TITLE = "Task title?"
ASK_PRIORITY = "Priority?"
ASK_CATEGORY = "Category?"
ASK_DUE = "Due date? Send YYYY-MM-DD or YYYY-MM-DD HH:MM, or press Skip."
INVALID_DUE = "Invalid date. Use YYYY-MM-DD or YYYY-MM-DD HH:MM."
ASK_NEW_TITLE = "New title?"
ASK_NEW_DESCRIPTION = "New description? Send '-' to clear."
ASK_SHARE_TARGET = "Share with whom? Send: <email or user id> [view|edit|admin]"

ASK_SUGGEST_PROMPT = "What do you need help with?"
ASK_TEMPLATE_NAME = "Template name?"
ASK_TEMPLATE_DESCRIPTION = "Template description? Send '-' to skip."
ASK_TEMPLATE_ESTIMATE = "Estimated minutes? Press Skip if unsure."
ASK_TEMPLATE_STEPS = "Steps, one per line. Send '-' for none."

FOCUS_DONE = "⏰ {mode} finished! Next up: {next_mode}."
FOCUS_DURATION_SET = "{mode} sessions now last {minutes} min."
