"""Line item management: commands and handler.

Prices arrive in dollars from the catalogue and are converted to integer
cents here, at the edge of the domain.
"""

from protean import handle
from protean.fields import Date, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.pricing.money import to_cents
from checkout.session.session import CheckoutSession


@checkout.command(part_of="CheckoutSession")
class AddLineItem:
    session_id = Identifier(required=True)
    service_id = Identifier(required=True)
    service_type = String(required=True, max_length=50)
    service_name = String(required=True, max_length=255)
    category = String(max_length=100)
    selected_date = Date(required=True)
    start_time = String(max_length=10)
    end_time = String(max_length=10)
    check_out_date = Date()
    num_people = Integer(required=True, min_value=1)
    base_price = Float(required=True, min_value=0.0)
    fees = Float(default=0.0, min_value=0.0)
    taxes = Float(default=0.0, min_value=0.0)
    discounts = Float(default=0.0, min_value=0.0)
    option_id = String(max_length=100)
    notes = Text()


@checkout.command(part_of="CheckoutSession")
class RemoveLineItem:
    session_id = Identifier(required=True)
    item_id = Identifier(required=True)


@checkout.command_handler(part_of=CheckoutSession)
class ManageLineItemsHandler:
    @handle(AddLineItem)
    def add_line_item(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        item_id = session.add_item(
            service_id=command.service_id,
            service_type=command.service_type,
            service_name=command.service_name,
            category=command.category,
            selected_date=command.selected_date,
            start_time=command.start_time,
            end_time=command.end_time,
            check_out_date=command.check_out_date,
            num_people=command.num_people,
            base_cents=to_cents(command.base_price),
            fees_cents=to_cents(command.fees),
            taxes_cents=to_cents(command.taxes),
            discounts_cents=to_cents(command.discounts),
            option_id=command.option_id,
            notes=command.notes,
        )
        repo.add(session)
        return item_id

    @handle(RemoveLineItem)
    def remove_line_item(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        session.remove_item(item_id=command.item_id)
        repo.add(session)
