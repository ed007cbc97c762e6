import csv
import io

from models import PersonaResult
from personas import get_persona


def to_csv(result: PersonaResult) -> bytes:
    """Export a persona result to CSV."""
    persona = get_persona(result.persona_id)
    f = result.features

    out = io.StringIO()
    w = csv.writer(out)

    w.writerow(["SOLANA PERSONA ANALYSIS"])
    w.writerow(["Generated", result.analyzed_at.strftime("%Y-%m-%d %H:%M:%S")])
    w.writerow([])

    # ── Persona ───────────────────────────────────────────────────────
    w.writerow(["PERSONA"])
    w.writerow(["Wallet", result.wallet_address])
    w.writerow(["Persona", persona.title])
    w.writerow(["Archetype", persona.archetype])
    w.writerow(["Data Source", f.data_source.value])
    w.writerow([])

    # ── Statistics ────────────────────────────────────────────────────
    w.writerow(["STATISTICS"])
    w.writerow(["Total Transactions", f.total_transactions])
    w.writerow(["NFT Count", f.nft_count])
    w.writerow(["Memecoin Trades", f.memecoin_trade_count])
    w.writerow(["DeFi Interactions", f.defi_interaction_count])
    w.writerow(["Total Volume (SOL)", f"{f.total_volume:.2f}"])
    w.writerow(["Unique Programs", f.unique_program_count])
    w.writerow(["Account Age (Days)", f.account_age_days])

    if result.performance:
        p = result.performance
        w.writerow([])
        w.writerow(["PERFORMANCE"])
        w.writerow(["Trades", p.total_trades])
        w.writerow(["Win Rate (est.)", f"{p.win_rate_estimate:.1f}%"])
        w.writerow(["PnL Sign (est.)", p.estimated_pnl_sign])
        w.writerow(["Risk Profile", p.risk_profile.value])
        w.writerow(["Trading Pattern", p.trading_pattern.value])

    return out.getvalue().encode("utf-8")


def to_share_text(result: PersonaResult) -> str:
    persona = get_persona(result.persona_id)
    f = result.features
    return (
        f"🔮 I'm a {persona.title} on Solana! {persona.icon}\n\n"
        f"📊 My stats:\n"
        f"• {f.total_transactions} transactions\n"
        f"• {f.nft_count} NFTs\n"
        f"• {f.memecoin_trade_count} memecoin trades\n"
        f"• {f.defi_interaction_count} DeFi interactions\n\n"
        f"What's your Solana persona? 🚀"
    )


def to_text(result: PersonaResult) -> str:
    """Plain-text summary, suitable for a clipboard."""
    persona = get_persona(result.persona_id)
    f = result.features
    return (
        f"🔮 Solana Persona Analysis\n\n"
        f"{persona.icon} {persona.title}\n"
        f"{persona.description}\n\n"
        f"📊 Statistics:\n"
        f"• Total Transactions: {f.total_transactions}\n"
        f"• NFT Activity: {f.nft_count}\n"
        f"• Memecoin Trades: {f.memecoin_trade_count}\n"
        f"• DeFi Interactions: {f.defi_interaction_count}\n"
        f"• Total Volume: {f.total_volume:g} SOL\n"
        f"• Account Age: {f.account_age_days} days"
    )
