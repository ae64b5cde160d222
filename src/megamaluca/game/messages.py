"""Player-facing text."""

from megamaluca.game.draw import OutcomeKind

WELCOME = "Escolha 6 números se tiver coragem..."
DRAWING = "Calculando o azar..."

HEADLINES = {
    OutcomeKind.WIN: "VOCÊ É MALUCO!",
    OutcomeKind.LOSE: "Tente novamente, fracassado.",
}

# Used whenever the commentary request fails
FALLBACK_COMMENTARY = {
    OutcomeKind.WIN: "VC É MALUCO?! NÃO ERA PRA ACERTAR ESSE JOGO SEU MALUCO!",
    OutcomeKind.LOSE: "Errou feio, errou rude!",
}

CELEBRATION_CAPTION = "Vem meu querido, vou gastar todo seu dinheiro!"
