"""Constants describing contact fields, their restrictions and submodules."""

from granthub.core.shared_models import ContactSubmodule

# Demographic fields that can be restricted to groups through field-access rules.
RESTRICTED_CONTACT_FIELDS = (
    "gender",
    "gender_request_preference",
    "is_bipoc",
    "racism_request_preference",
    "other_margins",
    "onboarding_date",
    "break_until",
)

# Scalar fields a caller may set on create/update, in audit order.
CONTACT_SCALAR_FIELDS = (
    "name",
    "pronouns",
    *RESTRICTED_CONTACT_FIELDS,
    "address",
    "postal_code",
    "state",
    "city",
    "country",
    "email",
    "phone",
    "signal",
    "website",
    "group_id",
)

# Free-text columns searched by the `query` parameter of the contact list.
CONTACT_SEARCH_FIELDS = (
    "name",
    "pronouns",
    "other_margins",
    "address",
    "postal_code",
    "state",
    "city",
    "country",
    "email",
    "phone",
    "signal",
    "website",
)

# Columns addressable by `contactField` filters.
CONTACT_FILTER_FIELDS = (
    "email",
    "phone",
    "signal",
    "name",
    "pronouns",
    "address",
    "postal_code",
    "state",
    "city",
    "country",
    "website",
)

# Field-access keys for profile attributes are namespaced to avoid clashing with columns.
ATTRIBUTE_FIELD_PREFIX = "profile_attribute."
SOCIAL_LINK_FIELD_PREFIX = "social_link."
SUBMODULE_FIELD_PREFIX = "submodule."

CONTACT_SUBMODULE_FIELDS: dict[ContactSubmodule, tuple[str, ...]] = {
    ContactSubmodule.SUPERVISION: RESTRICTED_CONTACT_FIELDS,
    ContactSubmodule.EVENTS: (),
    ContactSubmodule.SHOP: (),
}


def attribute_field_key(key: str) -> str:
    """Field-access / change-log key of a profile attribute."""
    return f"{ATTRIBUTE_FIELD_PREFIX}{key}"


def social_link_field_key(platform: str) -> str:
    """Change-log key of a social link."""
    return f"{SOCIAL_LINK_FIELD_PREFIX}{platform}"


def submodule_field_keys(submodule: ContactSubmodule) -> tuple[str, ...]:
    """Field keys gating a submodule.

    Submodules without fields of their own are gated on a pseudo key so that
    they can still be restricted to groups.
    """
    fields = CONTACT_SUBMODULE_FIELDS.get(submodule, ())
    if fields:
        return fields
    return (f"{SUBMODULE_FIELD_PREFIX}{submodule.value}",)
