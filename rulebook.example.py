# Rulebook for the interactive tester and the bot.
# Try: epilink tester rulebook.example.py
#   Everyone[123;bob;0001]
#   Staff[123;bob;0001;bob@example.com]


@rule("Everyone")
def everyone(discord_id, username, discriminator):
    return ["member"]


@strong_rule("Staff")
def staff(discord_id, username, discriminator, email):
    if email.endswith("@staff.example.com"):
        return ["staff", "member"]
    return []


@email_validator
def validate(email):
    return email.endswith("@example.com") or email.endswith("@staff.example.com")
