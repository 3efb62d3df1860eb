"""
Configurações do sistema de rastreamento de trajetória
"""

from bitmap import Color

# Janela do jogo
GAME_WINDOW_TITLE = "ShellShock"  # Trecho do título procurado entre as janelas abertas

# Tamanho do tanque como fração da tela (medido em 1920x1080 e 2560x1440)
TANK_WIDTH_FRACTION = 0.0208333
TANK_HEIGHT_FRACTION = 0.0185185

# Faixa do menu no topo da janela (nunca contém o tanque)
MENU_BAR_FRACTION = 0.17037037

# Busca em duas fases
COARSE_STRIDE = 20  # Passo (px) da varredura grossa sobre a tela inteira
FINE_STRIDE = 1     # Passo (px) do refinamento
REFINE_MARGIN = 1   # Margem do refinamento em tamanhos de janela para cada lado

# Confiança mínima (média do score na janela / 255) para aceitar a detecção
MIN_CONFIDENCE = 0.05

# Constantes físicas, medidas em um monitor 2560x1440 (16:9)
REFERENCE_WIDTH = 2560
REFERENCE_HEIGHT = 1440
POWER_CONSTANT = 0.995
WIND_CONSTANT = 0.00364
GRAVITY_CONSTANT = 3.04

# Tanque inicial
DEFAULT_ANGLE = -77
DEFAULT_POWER = 37
DEFAULT_WIND = 23
DEFAULT_DIRECTION = "right"

# Desenho da trajetória
DOT_LENGTH = 4            # Comprimento (px) de cada traço e de cada espaço
MAX_CURVE_STEPS = 10000   # Limite de passos caso a curva nunca saia da tela
PEN_WIDTH = 2
PEN_COLOR = Color(r=200, g=100, b=100, a=255)
OVERLAY_BACKGROUND = Color(r=0, g=0, b=0, a=0)  # Totalmente transparente
OVERLAY_BACKEND = "qt"    # "qt" (janela transparente) ou "gdi" (desenha direto na janela do jogo)

# Loop em tempo real
LOOP_FPS = 10  # Frequência de atualização (quadros por segundo)
LOOP_INTERVAL_MS = int(1000 / LOOP_FPS)
CAPTURE_RETRY_MS = 100

# Entrada manual de parâmetros pelo console
ENABLE_CONSOLE_INPUT = True

# UI
WINDOW_TITLE = "Trajectory Tracer - Real Time"
LOG_MAX_LINES = 100
PREVIEW_MAX_WIDTH = 480

# Debug / Logs
DEBUG_CAPTURE_LOGS = True  # Ativa logs detalhados de captura/detecção
DEBUG_DETECTION_LOG_INTERVAL = 30  # Intervalo de frames para logar progresso
ENABLE_IMAGEGRAB_FALLBACK = True  # Usa ImageGrab se BitBlt falhar
