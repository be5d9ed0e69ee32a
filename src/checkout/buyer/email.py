"""EmailAddress value object for guest contact emails."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from checkout.domain import checkout

_FORBIDDEN = (";", ",", "(", ")", '"', ":", "<", ">", "[", "]", "\\")


def email_problem(email: str) -> str | None:
    """Return a description of what is wrong with ``email``, or None if it looks valid."""
    if any(ch.isspace() for ch in email):
        return "must not contain whitespace"
    if email.count("@") != 1:
        return "must contain exactly one @"

    local_part, domain_part = email.split("@", 1)
    if not local_part or local_part.startswith(".") or local_part.endswith("."):
        return "has an invalid local part"
    if not domain_part or domain_part.startswith(".") or domain_part.endswith("."):
        return "has an invalid domain"
    if "." not in domain_part:
        return "has an invalid domain"
    if any(label.startswith("-") or label.endswith("-") for label in domain_part.split(".")):
        return "has an invalid domain"
    if ".." in email:
        return "must not contain consecutive dots"
    if any(ch in email for ch in _FORBIDDEN):
        return "contains forbidden characters"
    return None


@checkout.value_object
class EmailAddress:
    """A structurally valid email address.

    Only shape is checked (one @, sane local and domain parts, no forbidden
    characters); deliverability is the payment processor's concern.
    """

    address = String(required=True, max_length=254)

    @invariant.post
    def address_is_well_formed(self):
        problem = email_problem(self.address)
        if problem:
            raise ValidationError({"email": [f"Email address {problem}"]})
