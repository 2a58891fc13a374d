"""Interactive CLI payment simulator — test the OTP flow without a browser."""

import asyncio

from prepwise_payments.client.api_client import PaymentAPIClient
from prepwise_payments.client.countdown import format_remaining
from prepwise_payments.client.widget import Notification, PaymentContext, PaymentOTPWidget
from prepwise_payments.database.engine import init_db
from prepwise_payments.services.email_service import EmailService

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
CYAN = "\033[96m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"

_COLOURS = {"success": GREEN, "error": RED, "info": CYAN}


class ConsoleEmailService(EmailService):
    """Prints emails to the terminal instead of talking to SMTP."""

    async def send_payment_code(self, to_email, code, training_title, amount, ttl_seconds):
        print(f"\n{CYAN}📧 [to {to_email}] Code for {training_title} ({amount}): {BOLD}{code}{RESET}")

    async def send_payment_confirmation(self, to_email, participant_name, training_title,
                                        confirmation_code, payment_method, training_link):
        print(f"\n{CYAN}📧 [to {to_email}] Confirmed {training_title}: {confirmation_code}{RESET}")


def show(notification: Notification) -> None:
    colour = _COLOURS.get(notification.level, RESET)
    print(f"{colour}{BOLD}{notification.level.upper()}:{RESET} {notification.text}")


async def ask(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip()


async def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print("  💳  PrepWise Payments — OTP Simulator")
    print(f"{'=' * 52}{RESET}\n")

    await init_db()

    print(f"{DIM}Tip: run seed.py first; try training 'python-foundations'{RESET}")
    print(f"{DIM}     Type a code to submit, 'resend' for a new code, 'quit' to exit{RESET}\n")

    training_id = await ask(f"{YELLOW}Training ID: {RESET}") or "python-foundations"
    name = await ask(f"{YELLOW}Your name: {RESET}") or "Test Fresher"
    email = await ask(f"{YELLOW}Your email: {RESET}") or "fresher@example.com"
    slot = await ask(f"{YELLOW}Time slot (soft skills only, blank to skip): {RESET}") or None

    # ── Start the app in the background with console email ─
    import uvicorn
    from prepwise_payments.api.router import get_email_service
    from prepwise_payments.main import app

    app.dependency_overrides[get_email_service] = ConsoleEmailService
    config = uvicorn.Config(app, host="127.0.0.1", port=8000, log_level="warning")
    server = uvicorn.Server(config)
    server_task = asyncio.create_task(server.serve())
    await asyncio.sleep(0.5)

    context = PaymentContext(
        training_id=training_id,
        registration_data={
            "participantInfo": {
                "name": name,
                "email": email,
                "contact": "+910000000000",
                "affiliation": "undergraduate",
            }
        },
        payment_details={"method": "card"},
        selected_slot=slot,
    )
    api = PaymentAPIClient("http://127.0.0.1:8000")
    result = await api.send_payment_otp(
        email=email,
        training_id=training_id,
        registration_data=context.registration_data,
        payment_details=context.payment_details,
        selected_slot=slot,
    )
    if not result.success:
        show(Notification("error", result.message))
    else:
        widget = PaymentOTPWidget(api, context, notify=show)
        widget.open()
        while True:
            remaining = format_remaining(widget.countdown.remaining)
            try:
                user_input = await ask(f"{BLUE}{BOLD}[{widget.state.value} {remaining}] Code:{RESET} ")
            except (KeyboardInterrupt, EOFError):
                break

            if user_input.lower() == "quit":
                break
            if user_input.lower() == "resend":
                if not widget.can_resend:
                    show(Notification("info", f"You can resend in {remaining}"))
                    continue
                await widget.resend()
                continue

            widget.code.set_value(user_input)
            if await widget.submit():
                print(f"{GREEN}{BOLD}Booked!{RESET} {widget.confirmation}\n")
                break
        widget.close()

    print(f"{DIM}Goodbye!{RESET}")
    server.should_exit = True
    await server_task


if __name__ == "__main__":
    asyncio.run(main())
