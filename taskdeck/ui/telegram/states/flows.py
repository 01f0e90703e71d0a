from aiogram.fsm.state import State, StatesGroup


class AuthFlow(StatesGroup):
    signup_email = State()
    signup_password = State()
    signup_name = State()

    login_email = State()
    login_password = State()

    reset_email = State()
    reset_token = State()
    reset_password = State()


class TaskFlow(StatesGroup):
    # add flow
    add_title = State()
    add_priority = State()
    add_category = State()
    add_due = State()

    # edit flow
    edit_title = State()
    edit_description = State()
    edit_due = State()

    share_target = State()


class TemplateFlow(StatesGroup):
    name = State()
    description = State()
    priority = State()
    category = State()
    estimate = State()
    steps = State()


class SuggestFlow(StatesGroup):
    prompt = State()
