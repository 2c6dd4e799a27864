from apps.accounts.models import Role


def resolve_price(product, role):
    """
    Unit price for the requester's role.
    Dealer and Architect get their tier; every other role, including unknown
    or missing ones, pays the general price.
    """
    if role == Role.DEALER:
        return product.dealer_price
    if role == Role.ARCHITECT:
        return product.architect_price
    return product.general_price
