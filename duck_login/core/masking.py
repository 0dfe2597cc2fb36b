def mask_email(email: str) -> str:
    """Display-safe form of an address: a***e@duck.com."""
    if not email:
        return ""
    name, sep, domain = email.partition("@")
    if len(name) > 2:
        masked = f"{name[0]}***{name[-1]}"
    elif name:
        masked = f"{name[0]}***"
    else:
        masked = "***"
    return f"{masked}{sep}{domain}"
