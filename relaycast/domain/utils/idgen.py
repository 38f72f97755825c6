from ulid import ULID


def new_ulid(prefix: str | None = None) -> str:
    value = str(ULID()).lower()
    return f"{prefix}{value}" if prefix else value


def new_stream_app_id() -> str:
    return new_ulid("sa_")


def new_stream_key_id() -> str:
    return new_ulid("sk_")


def new_stream_id() -> str:
    return new_ulid("ls_")


def new_destination_id() -> str:
    return new_ulid("ds_")
