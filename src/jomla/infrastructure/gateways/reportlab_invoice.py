"""PDF invoices drawn with reportlab's canvas API."""

from __future__ import annotations

import io

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.units import inch
from reportlab.pdfgen.canvas import Canvas

from jomla.domain.gateway.invoice_renderer import InvoiceRenderer
from jomla.domain.model.order import FulfillmentMethod, Order

STORE_NAME = "Jomla Grocery Store"
STORE_TAGLINE = "Fresh groceries, bundled savings"
FOOTER = "Thank you for shopping with Jomla!"

MARGIN = 0.75 * inch
LINE = 14
ACCENT = colors.HexColor("#2E7D32")
MUTED = colors.HexColor("#666666")


class ReportlabInvoiceRenderer(InvoiceRenderer):

    def render(self, order: Order) -> bytes:
        buffer = io.BytesIO()
        canvas = Canvas(buffer, pagesize=LETTER)
        canvas.setTitle(f"Invoice {order.order_number}")
        _InvoiceLayout(canvas, order).draw()
        canvas.save()
        return buffer.getvalue()


class _InvoiceLayout:

    def __init__(self, canvas: Canvas, order: Order) -> None:
        self.canvas = canvas
        self.order = order
        self.width, self.height = LETTER
        self.y = self.height - MARGIN

    def draw(self) -> None:
        self._header()
        self._customer()
        self._fulfillment()
        self._items()
        self._totals()
        self._footer()

    # --- Sections -------------------------------------------------------------

    def _header(self) -> None:
        c = self.canvas
        c.setFillColor(ACCENT)
        c.setFont("Helvetica-Bold", 20)
        c.drawString(MARGIN, self.y, STORE_NAME)
        c.setFont("Helvetica-Bold", 16)
        c.drawRightString(self.width - MARGIN, self.y, "INVOICE")
        self.y -= LINE + 4

        c.setFillColor(MUTED)
        c.setFont("Helvetica", 9)
        c.drawString(MARGIN, self.y, STORE_TAGLINE)
        c.setFillColor(colors.black)
        c.setFont("Helvetica", 10)
        c.drawRightString(self.width - MARGIN, self.y, f"Order #: {self.order.order_number}")
        self.y -= LINE
        c.drawRightString(
            self.width - MARGIN, self.y, f"Date: {self.order.created_at:%B %d, %Y}"
        )
        self.y -= LINE
        self._rule()

    def _customer(self) -> None:
        customer = self.order.customer
        self._heading("Bill To")
        self._text(customer.name)
        if customer.email:
            self._text(customer.email)
        if customer.phone:
            self._text(customer.phone)
        self.y -= LINE / 2

    def _fulfillment(self) -> None:
        order = self.order
        if order.fulfillment_method == FulfillmentMethod.DELIVERY and order.delivery_details:
            d = order.delivery_details
            self._heading("Delivery Address")
            self._text(d.address)
            self._text(f"{d.city}, {d.postal_code}")
            if d.notes:
                self._text(f"Notes: {d.notes}", muted=True)
        elif order.pickup_details:
            p = order.pickup_details
            self._heading("Pickup")
            self._text(p.pickup_location)
            self._text(f"Pickup time: {p.pickup_time:%B %d, %Y %I:%M %p}")
        self.y -= LINE / 2

    def _items(self) -> None:
        c = self.canvas
        right = self.width - MARGIN
        self._heading("Items")
        c.setFont("Helvetica-Bold", 10)
        c.drawString(MARGIN, self.y, "Description")
        c.drawRightString(right - 1.6 * inch, self.y, "Qty")
        c.drawRightString(right, self.y, "Amount")
        self.y -= 4
        self._rule()

        for line in self.order.offers:
            self._new_page_if_needed()
            c.setFont("Helvetica-Bold", 10)
            c.drawString(MARGIN, self.y, f"{line.offer_name} (Bundle)")
            c.drawRightString(right - 1.6 * inch, self.y, str(line.quantity))
            c.drawRightString(right, self.y, str(line.discounted_total))
            self.y -= LINE
            if line.original_total != line.discounted_total:
                self._text(f"(was {line.original_total})", muted=True, indent=12)
            for item in line.products:
                self._new_page_if_needed()
                self._text(
                    f"- {item.product_name}: {item.discounted_price} (was {item.base_price})",
                    muted=True,
                    indent=12,
                )

        for line in self.order.products:
            self._new_page_if_needed()
            c.setFont("Helvetica", 10)
            c.drawString(MARGIN, self.y, f"{line.product_name} @ {line.price_per_unit}")
            c.drawRightString(right - 1.6 * inch, self.y, str(line.quantity))
            c.drawRightString(right, self.y, str(line.total_price))
            self.y -= LINE

        self._rule()

    def _totals(self) -> None:
        totals = self.order.totals
        rows = [("Subtotal", str(totals.subtotal))]
        if totals.total_savings.cents:
            rows.append(("You saved", f"-{totals.total_savings}"))
        fee = str(totals.delivery_fee) if totals.delivery_fee.cents else "FREE"
        if self.order.fulfillment_method == FulfillmentMethod.DELIVERY:
            rows.append(("Delivery fee", fee))
        rows.append(("Tax (10%)", str(totals.tax)))

        c = self.canvas
        label_x = self.width - MARGIN - 2.5 * inch
        for label, value in rows:
            self._new_page_if_needed()
            c.setFont("Helvetica", 10)
            c.setFillColor(ACCENT if label == "You saved" else colors.black)
            c.drawString(label_x, self.y, label)
            c.drawRightString(self.width - MARGIN, self.y, value)
            self.y -= LINE
        c.setFillColor(colors.black)
        c.setFont("Helvetica-Bold", 12)
        c.drawString(label_x, self.y, "Total")
        c.drawRightString(self.width - MARGIN, self.y, str(self.order.total))
        self.y -= LINE

    def _footer(self) -> None:
        c = self.canvas
        c.setFont("Helvetica-Oblique", 9)
        c.setFillColor(MUTED)
        c.drawCentredString(self.width / 2, MARGIN / 2, FOOTER)
        c.setFillColor(colors.black)

    # --- Drawing helpers ------------------------------------------------------

    def _heading(self, title: str) -> None:
        self._new_page_if_needed()
        self.canvas.setFillColor(ACCENT)
        self.canvas.setFont("Helvetica-Bold", 11)
        self.canvas.drawString(MARGIN, self.y, title)
        self.canvas.setFillColor(colors.black)
        self.y -= LINE

    def _text(self, text: str, muted: bool = False, indent: float = 0) -> None:
        self._new_page_if_needed()
        self.canvas.setFont("Helvetica", 9 if muted else 10)
        self.canvas.setFillColor(MUTED if muted else colors.black)
        self.canvas.drawString(MARGIN + indent, self.y, text)
        self.canvas.setFillColor(colors.black)
        self.y -= LINE

    def _rule(self) -> None:
        self.canvas.setStrokeColor(colors.lightgrey)
        self.canvas.line(MARGIN, self.y, self.width - MARGIN, self.y)
        self.y -= LINE

    def _new_page_if_needed(self) -> None:
        if self.y < MARGIN + 2 * LINE:
            self._footer()
            self.canvas.showPage()
            self.y = self.height - MARGIN
