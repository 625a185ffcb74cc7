import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from tiffin_api.core.config import settings
from tiffin_api.models.booking import Booking
from tiffin_api.models.pricing import BookingPriceBreakdown
from tiffin_api.models.seller import Seller
from tiffin_api.models.tiffin import Tiffin

logger = logging.getLogger(__name__)

def send_email(to_email: str, subject: str, body: str) -> bool:
    if not settings.MAIL_SERVER:
        # Console fallback for local development
        logger.info("Email to %s | %s\n%s", to_email, subject, body)
        return True

    try:
        msg = MIMEMultipart('alternative')
        msg['From'] = settings.MAIL_FROM
        msg['To'] = to_email
        msg['Subject'] = subject
        msg.attach(MIMEText(body, 'html'))

        if settings.MAIL_SSL:
            server = smtplib.SMTP_SSL(settings.MAIL_SERVER, settings.MAIL_PORT)
        else:
            server = smtplib.SMTP(settings.MAIL_SERVER, settings.MAIL_PORT)
            server.starttls()

        if settings.MAIL_USERNAME:
            server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
        server.sendmail(settings.MAIL_FROM, to_email, msg.as_string())
        server.quit()
        logger.info("Email sent to %s: %s", to_email, subject)
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("Failed to send email to %s: %s", to_email, e)
        return False

def booking_breakdown(booking: Booking) -> BookingPriceBreakdown:
    return BookingPriceBreakdown(
        base_price=booking.base_price,
        add_ons_price=booking.add_ons_price,
        customizations_price=booking.customizations_price,
        subtotal=round(booking.base_price + booking.add_ons_price + booking.customizations_price, 2),
        delivery_charge=booking.delivery_charge,
        discount_amount=booking.discount_amount,
        coupon_code=booking.coupon_code,
        total_price=booking.total_price,
    )

def _row(label: str, amount: str, color: str = "#333333", bold: bool = False) -> str:
    weight = "font-weight: 700;" if bold else ""
    return f"""
            <tr>
                <td style="padding: 4px 0; font-size: 14px; color: {color}; {weight}">{label}</td>
                <td style="padding: 4px 0; text-align: right; font-size: 14px; color: {color}; {weight}">{amount}</td>
            </tr>"""

def format_price_breakdown_for_email(breakdown: BookingPriceBreakdown) -> str:
    """Price table shared by the customer and seller emails"""
    rows = _row("Base price", f"₹{breakdown.base_price:.2f}")
    if breakdown.add_ons_price:
        rows += _row("Add-ons", f"₹{breakdown.add_ons_price:.2f}")
    if breakdown.customizations_price:
        rows += _row("Weekly customizations", f"₹{breakdown.customizations_price:.2f}")
    if breakdown.delivery_charge:
        rows += _row("Delivery charge", f"₹{breakdown.delivery_charge:.2f}")
    else:
        rows += _row("Delivery charge", "FREE", color="#2E7D32")
    if breakdown.discount_amount > 0:
        label = f"Discount ({breakdown.coupon_code})" if breakdown.coupon_code else "Discount"
        rows += _row(label, f"-₹{breakdown.discount_amount:.2f}", color="#AA8C2C")
    rows += _row("Total", f"₹{breakdown.total_price:.2f}", bold=True)

    return f"""
        <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%">{rows}
        </table>"""

def format_selection_for_email(booking: Booking) -> str:
    lines = []
    for add_on in booking.add_ons:
        lines.append(f"• {add_on['name']} x {add_on['quantity']}")
    for custom in booking.weekly_customizations:
        lines.append(f"• {custom['name']} ({', '.join(custom['days'])})")
    if booking.selected_days:
        lines.append(f"Days: {', '.join(booking.selected_days)}")
    return "<br>".join(lines)

def _wrap(title: str, content: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <title>{title}</title>
    </head>
    <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <div style="background: #E65100; color: white; padding: 20px; text-align: center;">
            <h1>{title}</h1>
        </div>
        <div style="padding: 20px;">{content}
        </div>
    </body>
    </html>
    """

def send_booking_confirmation_to_customer(booking: Booking, tiffin: Tiffin, seller: Seller) -> bool:
    content = f"""
            <h2>Hello {booking.customer_name},</h2>
            <p>Your booking <strong>#{booking.id}</strong> for <strong>{tiffin.title}</strong> has been placed.</p>
            <p><strong>Plan:</strong> {booking.booking_type.value} &middot; <strong>Quantity:</strong> {booking.quantity}</p>
            <p><strong>Delivery:</strong> {booking.date:%B %d, %Y}, {booking.slot}</p>
            <p>{format_selection_for_email(booking)}</p>
            {format_price_breakdown_for_email(booking_breakdown(booking))}
            <p>Seller: {seller.name} ({seller.contact_number})</p>"""
    subject = f"Booking Confirmed - {tiffin.title} #{booking.id}"
    return send_email(booking.customer_email, subject, _wrap("Booking Confirmed", content))

def send_order_notification_to_seller(booking: Booking, tiffin: Tiffin, seller: Seller) -> bool:
    dashboard_link = f"{settings.FRONTEND_URL}/seller/dashboard"
    content = f"""
            <h2>Hello {seller.name},</h2>
            <p>You have a new booking <strong>#{booking.id}</strong> for <strong>{tiffin.title}</strong>.</p>
            <p><strong>Customer:</strong> {booking.customer_name}, {booking.customer_phone}, {booking.customer_email}</p>
            <p><strong>Deliver to:</strong> {booking.delivery_address}</p>
            <p><strong>Plan:</strong> {booking.booking_type.value} &middot; <strong>Quantity:</strong> {booking.quantity}</p>
            <p><strong>Delivery:</strong> {booking.date:%B %d, %Y}, {booking.slot}</p>
            <p>{format_selection_for_email(booking)}</p>
            {format_price_breakdown_for_email(booking_breakdown(booking))}
            <p><a href="{dashboard_link}">Open your dashboard</a></p>"""
    subject = f"New Booking #{booking.id} - {tiffin.title}"
    return send_email(seller.email, subject, _wrap("New Booking", content))

def send_booking_status_update(booking: Booking, tiffin_title: str) -> bool:
    content = f"""
            <h2>Hello {booking.customer_name},</h2>
            <p>Your booking <strong>#{booking.id}</strong> for <strong>{tiffin_title}</strong> is now
            <strong>{booking.status.value}</strong>.</p>
            <p>Amount: ₹{booking.total_price:.2f}</p>"""
    subject = f"Booking #{booking.id} {booking.status.value}"
    return send_email(booking.customer_email, subject, _wrap(f"Booking {booking.status.value}", content))
