"""Text frames the chat server sends. The browser client matches on some of them."""

NAME_PROMPT = "Please enter your name:"
NAME_TAKEN_PROMPT = "Username already in use, please enter a different name:"
NAME_EMPTY_PROMPT = "Name cannot be empty, please enter your name:"


def visitor_count(count: int) -> str:
    return f"Current visitors: {count}"


def welcome(username: str) -> str:
    return f"Welcome, {username}!"


def joined(username: str) -> str:
    return f"{username} has joined the chat."


def connected_users(usernames: list[str]) -> str:
    return f"System: Currently connected: {', '.join(usernames)}"


def disconnected(username: str) -> str:
    return f"{username} has disconnected."


def renamed(old_name: str, new_name: str) -> str:
    return f"System: {old_name} has changed their name to {new_name}."
