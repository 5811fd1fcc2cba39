"""
Interactive CLI for PharmaChain.
Browse inventory, distributions, dispensing and reports with the same
role-based rules the API enforces. The signed-in user is kept in local
storage, so a restarted CLI resumes the previous session.
"""

import getpass
import shlex

import pandas as pd

from pharmachain.config import MAX_PREVIEW_ROWS, SCREEN_ROLES
from pharmachain.context import AppContext
from pharmachain.database import init_engine
from pharmachain.errors import AuthenticationError, PharmaChainError, ValidationFailed
from pharmachain.rbac import can_access_screen
from pharmachain.screens.reports import INVENTORY_COLUMNS, inventory_frame
from pharmachain.session import DatabaseSessionStore
from pharmachain.status import tracking_timeline

HELP = """
Commands:
  screens                          list the screens you can open
  dashboard                        overview for your location
  inventory [search]               list visible drugs
  order <drug-id> <quantity>       order more stock for a drug
  distributions [search]           list visible distributions
  distribute <destination> <drug>=<qty> [...]
                                   create a pending distribution
  track <distribution-id>          show the tracking timeline
  dispensing [search]              list dispensing records
  dispense <patient> <drug>=<qty>:<days> [...]
                                   dispense a prescription
  patients [search]                list patients
  users [search]                   list users you can see
  report <dataset> [period]        summary for a report dataset
  export <dataset> [period]        write the report CSV to disk
  logout                           end the session
  quit                             leave the CLI
"""


def show(df: pd.DataFrame) -> None:
    if df.empty:
        print("(no rows)")
    else:
        print(df.head(MAX_PREVIEW_ROWS).to_string(index=False))


def prompt_login(ctx: AppContext) -> bool:
    """Ask for credentials until login succeeds; False when the user gives up."""
    while True:
        try:
            email = input("Email (or 'quit'): ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            return False
        if not email or email.lower() in {"quit", "exit"}:
            print("Goodbye.")
            return False
        try:
            password = getpass.getpass("Password: ")
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            return False

        print("[auth] Signing in...")
        try:
            user = ctx.login(email, password)
        except AuthenticationError as e:
            print(f"[auth] Login failed: {e}")
            continue
        print(f"[auth] Logged in as: {user.name} (role={user.role})")
        return True


def _pairs(args, with_days=False):
    out = []
    for arg in args:
        name, _, rest = arg.rpartition("=")
        if not name:
            raise ValidationFailed({"items": f"Expected <drug>=<qty>, got '{arg}'"})
        if with_days:
            qty, _, days = rest.partition(":")
            out.append({"name": name, "quantity": qty, "days": days or 1})
        else:
            out.append({"name": name, "quantity": rest})
    return out


def run_command(ctx: AppContext, cmd: str, args) -> None:
    search = " ".join(args) or None

    if cmd == "screens":
        print(", ".join(s for s in SCREEN_ROLES if can_access_screen(ctx.user, s)))

    elif cmd == "dashboard":
        for key, value in ctx.screen("dashboard").overview().items():
            print(f"  {key}: {value}")

    elif cmd == "inventory":
        screen = ctx.screen("inventory")
        rows = screen.list(search)
        if not rows:
            print(screen.empty_state())
            return
        show(inventory_frame(rows, ctx.current_date())[INVENTORY_COLUMNS])

    elif cmd == "order":
        drug_id, quantity = args
        drug = ctx.screen("inventory").order_more(drug_id, {"quantity": quantity})
        print(f"[inventory] {quantity} units of {drug.name} have been ordered.")

    elif cmd == "distributions":
        rows = ctx.screen("distribution").list(search)
        show(pd.DataFrame([{
            "id": d.id, "date": d.date, "destination": d.destination,
            "items": len(d.items), "units": d.total_units, "status": d.status,
        } for d in rows]))

    elif cmd == "distribute":
        print("[distribution] Submitting...")
        dist = ctx.screen("distribution").create(
            {"destination": args[0], "items": _pairs(args[1:])}
        )
        print(f"[distribution] {dist.id} to {dist.destination} is pending approval.")

    elif cmd == "track":
        timeline = tracking_timeline(ctx.screen("distribution").get(args[0]))
        print(f"{timeline['id']}: {timeline['label']} ({timeline['progress']}%)")
        print(f"Estimated arrival: {timeline['estimated_arrival']}")
        for event in timeline["events"]:
            print(f"  {event['at']}  {event['event']}: {event['detail']}")

    elif cmd == "dispensing":
        rows = ctx.screen("dispensing").list(search)
        show(pd.DataFrame([{
            "id": r.id, "date": r.date, "patient": r.patient_name,
            "drugs": ", ".join(f"{d.name} x{d.quantity}" for d in r.drugs),
        } for r in rows]))

    elif cmd == "dispense":
        screen = ctx.screen("dispensing")
        patient = screen.find_patient(args[0])
        record = screen.dispense({"patient_id": patient.id, "drugs": _pairs(args[1:], with_days=True)})
        print(f"[dispensing] Prescription for {record.patient_name} has been dispensed ({record.id}).")

    elif cmd == "patients":
        rows = ctx.screen("patients").list(search)
        show(pd.DataFrame([{
            "id": p.id, "name": p.name, "age": p.age, "gender": p.gender,
            "last_visit": p.last_visit, "visits": p.visit_count,
        } for p in rows]))

    elif cmd == "users":
        rows = ctx.screen("settings").list_users(search)
        show(pd.DataFrame([{
            "id": u.id, "name": u.name, "email": u.email, "role": u.role,
            "location": u.location.name if u.location else "-",
        } for u in rows]))

    elif cmd == "report":
        summary = ctx.screen("reports").summary(args[0], args[1] if len(args) > 1 else None)
        for key, value in summary.items():
            print(f"  {key}: {value}")

    elif cmd == "export":
        print("[reports] Generating...")
        filename, body = ctx.screen("reports").export(args[0], args[1] if len(args) > 1 else None)
        with open(filename, "w", encoding="utf-8") as fh:
            fh.write(body)
        print(f"[reports] Wrote {filename}")

    else:
        print(f"Unknown command '{cmd}'. Type 'help' for the list.")


def main():
    print("=== PharmaChain: Supply-Chain Console ===\n")

    engine = init_engine()
    ctx = AppContext(DatabaseSessionStore(engine))

    user = ctx.restore()
    if user:
        print(f"[auth] Resumed session for {user.name} (role={user.role})")
    elif not prompt_login(ctx):
        return

    # ── REPL ─────────────────────────────────────────────────────────
    while True:
        try:
            line = input(f"\n{ctx.user.name}> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if not line:
            continue
        try:
            cmd, *args = shlex.split(line)
        except ValueError as e:
            print("[ERROR] Could not parse command:", e)
            continue
        cmd = cmd.lower()

        if cmd in {"quit", "exit"}:
            print("Goodbye.")
            break
        if cmd == "help":
            print(HELP)
            continue
        if cmd == "logout":
            ctx.logout()
            print("[auth] Logged out.")
            if not prompt_login(ctx):
                break
            continue

        try:
            run_command(ctx, cmd, args)
        except ValidationFailed as e:
            print("\n[INVALID]", e)
        except PharmaChainError as e:
            print(f"\n[{e.reason.upper()}] {e}")
        except (ValueError, IndexError):
            print(f"Missing or malformed arguments for '{cmd}'. Type 'help' for usage.")


if __name__ == "__main__":
    main()
