"""
Rastreador de Trajetória para ShellShock Live
Versão: 1.0.0 - Overlay Edition

Localiza o tanque na captura da janela do jogo e desenha a trajetória
prevista do tiro em um overlay transparente.
"""

import sys

if __name__ == '__main__':
    from ui import main
    sys.exit(main())
