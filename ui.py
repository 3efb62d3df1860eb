"""
Interface gráfica com rastreamento do tanque e trajetória em tempo real
"""

import sys
import cv2
import numpy as np
from PyQt5.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QPushButton, QLabel, QTextEdit, QGroupBox, QLineEdit,
    QCheckBox, QSpinBox, QComboBox, QFormLayout
)
from PyQt5.QtCore import Qt, pyqtSignal, QThread
from PyQt5.QtGui import QImage, QPixmap, QFont
from datetime import datetime

import config
from bitmap import argb_to_bgr
from curve import dotted_segments, draw_dotted_curve
from detector import TankDetector, DetectionResult
from overlay import OverlayWindow
from parameter_input import TankChannel, ConsoleParameterReader
from screen_capture import ScreenCapture, GdiLinePainter
from tank import Tank, Direction, TrajectoryPath

GREEN, RED, ORANGE, GREY = "#4CAF50", "#f44336", "#ff9800", "#e0e0e0"


def _button_style(background: str) -> str:
    return (
        f"QPushButton {{ background-color: {background}; color: white; padding: 10px;"
        " font-size: 14px; font-weight: bold; border-radius: 5px; }"
        " QPushButton:disabled { background-color: #cccccc; }"
    )


def _status_style(background: str) -> str:
    text = "black" if background == GREY else "white"
    return (
        f"QLabel {{ background-color: {background}; color: {text}; padding: 5px;"
        " border-radius: 3px; font-weight: bold; }"
    )


def _hint_style(color: str) -> str:
    return f"color: {color}; font-size: 10px;"


class TracerThread(QThread):
    """Thread do loop de quadros: captura, detecção e trajetória"""
    result_ready = pyqtSignal(object, object, object, object)  # (result, segments, rect, preview)
    tank_updated = pyqtSignal(object)
    error_occurred = pyqtSignal(str)
    debug_log = pyqtSignal(str)

    def __init__(self, detector, screen_capture, channel, tank, show_preview):
        super().__init__()
        self.detector = detector
        self.screen_capture = screen_capture
        self.channel = channel
        self.tank = tank
        self.show_preview = show_preview
        self.running = False
        self.frame_count = 0

    def run(self):
        """Loop de quadros"""
        self.running = True
        self.frame_count = 0

        if config.DEBUG_CAPTURE_LOGS:
            self.debug_log.emit(
                f"🔧 Thread iniciada ({self.screen_capture.name}) | {self.tank}"
            )

        while self.running:
            try:
                # Parâmetros novos vindos do console/painel substituem o tanque inteiro
                published = self.channel.poll()
                if published is not None:
                    published.screen_position = self.tank.screen_position
                    self.tank = published
                    self.tank_updated.emit(self.tank.with_parameters())

                colors = self.screen_capture.capture()
                if colors is None:
                    self.error_occurred.emit(
                        f"Erro na captura da janela ({self.screen_capture.name})"
                    )
                    self.msleep(config.CAPTURE_RETRY_MS)
                    continue

                self.frame_count += 1
                if (
                    config.DEBUG_CAPTURE_LOGS
                    and (
                        self.frame_count == 1
                        or self.frame_count % config.DEBUG_DETECTION_LOG_INTERVAL == 0
                    )
                ):
                    self.debug_log.emit(
                        f"📸 Frame #{self.frame_count} capturado ({colors.width}x{colors.height})"
                    )

                result = self.detector.detect(colors)
                dimensions = colors.size
                segments = []

                # Sem tanque neste quadro: não desenha, tenta de novo no próximo
                if result.found:
                    self.tank.screen_position = result.position
                    path = TrajectoryPath.from_tank(self.tank, dimensions)

                    if config.OVERLAY_BACKEND == "gdi":
                        with GdiLinePainter(self.screen_capture.hwnd, config.PEN_COLOR,
                                            config.PEN_WIDTH) as painter:
                            segments = draw_dotted_curve(painter.draw_line, path, dimensions)
                    else:
                        # O overlay Qt desenha na thread da interface
                        segments = list(dotted_segments(path, dimensions))

                preview = None
                if self.show_preview:
                    frame = argb_to_bgr(colors.as_2d())
                    preview = self.detector.visualize_detection(frame, result, segments)

                rect = self.screen_capture.get_window_rect()
                self.result_ready.emit(result, segments, rect, preview)

                # Aguarda próximo quadro (controle de FPS)
                self.msleep(config.LOOP_INTERVAL_MS)

            except Exception as e:
                self.error_occurred.emit(f"Erro no quadro: {e}")
                self.msleep(config.CAPTURE_RETRY_MS)

    def stop(self):
        """Para thread"""
        self.running = False


class TracerUI(QMainWindow):
    """Interface principal do rastreador"""

    def __init__(self, channel: TankChannel = None, tank: Tank = None):
        super().__init__()
        self.detector = TankDetector()
        self.screen_capture = ScreenCapture()
        self.tank = tank or Tank()
        self.channel = channel or TankChannel(self.tank)
        self.overlay = OverlayWindow()
        self.tracer_thread = None
        self.is_tracing = False
        self.connected = False

        # Estatísticas
        self.total_frames = 0
        self.successful_frames = 0

        self.init_ui()

    def init_ui(self):
        """Inicializa interface"""
        self.setWindowTitle(config.WINDOW_TITLE)
        self.setGeometry(100, 100, 700, 600)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QHBoxLayout(central_widget)

        left_panel = self.create_control_panel()
        main_layout.addWidget(left_panel, 1)

        right_panel = self.create_visualization_panel()
        main_layout.addWidget(right_panel, 2)

    def create_control_panel(self) -> QWidget:
        """Cria painel de controles"""
        panel = QWidget()
        layout = QVBoxLayout(panel)

        title = QLabel("🎯 Trajectory Tracer")
        title.setFont(QFont("Arial", 16, QFont.Bold))
        title.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)

        # Grupo: Janela do jogo
        window_group = QGroupBox("1. Janela do Jogo")
        window_layout = QVBoxLayout()

        self.txt_window_title = QLineEdit(config.GAME_WINDOW_TITLE)
        window_layout.addWidget(self.txt_window_title)

        self.btn_connect = QPushButton("🔗 Conectar")
        self.btn_connect.clicked.connect(self.connect_window)
        window_layout.addWidget(self.btn_connect)

        self.lbl_window_status = QLabel("Nenhuma janela conectada")
        self.lbl_window_status.setStyleSheet(_hint_style("#999"))
        window_layout.addWidget(self.lbl_window_status)

        window_group.setLayout(window_layout)
        layout.addWidget(window_group)

        # Grupo: Parâmetros do tiro
        params_group = QGroupBox("2. Parâmetros do Tiro")
        params_layout = QFormLayout()

        self.spin_angle = QSpinBox()
        self.spin_angle.setRange(-90, 90)
        self.spin_angle.setValue(self.tank.angle)
        self.spin_angle.setSuffix("°")
        params_layout.addRow("Ângulo:", self.spin_angle)

        self.spin_power = QSpinBox()
        self.spin_power.setRange(0, 100)
        self.spin_power.setValue(self.tank.power)
        params_layout.addRow("Força:", self.spin_power)

        self.spin_wind = QSpinBox()
        self.spin_wind.setRange(-100, 100)
        self.spin_wind.setValue(self.tank.wind)
        params_layout.addRow("Vento:", self.spin_wind)

        self.cmb_direction = QComboBox()
        self.cmb_direction.addItem("Direita →", Direction.RIGHT)
        self.cmb_direction.addItem("← Esquerda", Direction.LEFT)
        self.cmb_direction.setCurrentIndex(0 if self.tank.direction == Direction.RIGHT else 1)
        params_layout.addRow("Direção:", self.cmb_direction)

        # Cada controle publica só o próprio campo, sobre o último snapshot do canal
        self.spin_angle.valueChanged.connect(lambda value: self.on_parameter_changed(angle=value))
        self.spin_power.valueChanged.connect(lambda value: self.on_parameter_changed(power=value))
        self.spin_wind.valueChanged.connect(lambda value: self.on_parameter_changed(wind=value))
        self.cmb_direction.currentIndexChanged.connect(
            lambda _: self.on_parameter_changed(direction=self.cmb_direction.currentData())
        )

        params_group.setLayout(params_layout)
        layout.addWidget(params_group)

        # Grupo: Opções
        options_group = QGroupBox("3. Opções")
        options_layout = QVBoxLayout()

        self.chk_preview = QCheckBox("Preview da captura")
        self.chk_preview.setChecked(True)
        options_layout.addWidget(self.chk_preview)

        fps_layout = QFormLayout()
        self.spin_fps = QSpinBox()
        self.spin_fps.setRange(1, 60)
        self.spin_fps.setValue(config.LOOP_FPS)
        self.spin_fps.setSuffix(" FPS")
        self.spin_fps.valueChanged.connect(self.on_fps_changed)
        fps_layout.addRow("Taxa de Atualização:", self.spin_fps)
        options_layout.addLayout(fps_layout)

        options_group.setLayout(options_layout)
        layout.addWidget(options_group)

        # Botões de controle
        control_layout = QHBoxLayout()

        self.btn_start = QPushButton("▶ Iniciar")
        self.btn_start.clicked.connect(self.start_tracing)
        self.btn_start.setEnabled(False)
        self.btn_start.setStyleSheet(_button_style(GREEN))
        control_layout.addWidget(self.btn_start)

        self.btn_stop = QPushButton("⏸ Parar")
        self.btn_stop.clicked.connect(self.stop_tracing)
        self.btn_stop.setEnabled(False)
        self.btn_stop.setStyleSheet(_button_style(RED))
        control_layout.addWidget(self.btn_stop)

        layout.addLayout(control_layout)

        # Estatísticas
        stats_group = QGroupBox("Estatísticas")
        stats_layout = QVBoxLayout()

        self.lbl_total = QLabel("Quadros: 0")
        self.lbl_success = QLabel("Tanque encontrado: 0")
        self.lbl_rate = QLabel("Taxa: 0%")
        self.lbl_tank_position = QLabel("Nenhuma posição detectada")
        self.lbl_tank_position.setStyleSheet(_hint_style("#999"))

        stats_layout.addWidget(self.lbl_total)
        stats_layout.addWidget(self.lbl_success)
        stats_layout.addWidget(self.lbl_rate)
        stats_layout.addWidget(self.lbl_tank_position)

        self.btn_reset_stats = QPushButton("🔄 Resetar")
        self.btn_reset_stats.clicked.connect(self.reset_stats)
        stats_layout.addWidget(self.btn_reset_stats)

        stats_group.setLayout(stats_layout)
        layout.addWidget(stats_group)

        # Log
        log_group = QGroupBox("Log de Eventos")
        log_layout = QVBoxLayout()

        self.log_text = QTextEdit()
        self.log_text.setReadOnly(True)
        self.log_text.setMaximumHeight(250)
        self.log_text.document().setMaximumBlockCount(config.LOG_MAX_LINES)
        self.log_text.setFont(QFont("Consolas", 9))
        log_layout.addWidget(self.log_text)

        self.btn_clear_log = QPushButton("🗑 Limpar Log")
        self.btn_clear_log.clicked.connect(self.clear_log)
        log_layout.addWidget(self.btn_clear_log)

        log_group.setLayout(log_layout)
        layout.addWidget(log_group)

        layout.addStretch()
        return panel

    def create_visualization_panel(self) -> QWidget:
        """Cria painel de visualização"""
        panel = QWidget()
        layout = QVBoxLayout(panel)

        viz_title = QLabel("Visualização em Tempo Real")
        viz_title.setAlignment(Qt.AlignCenter)
        viz_title.setFont(QFont("Arial", 12, QFont.Bold))
        layout.addWidget(viz_title)

        self.image_label = QLabel()
        self.image_label.setAlignment(Qt.AlignCenter)
        self.image_label.setStyleSheet("QLabel { border: 2px solid #cccccc; border-radius: 5px; background-color: #f0f0f0; }")
        self.image_label.setText("Aguardando captura...\n\nConecte a janela do jogo para começar")
        layout.addWidget(self.image_label)

        self.status_label = QLabel("Status: Aguardando")
        self.status_label.setAlignment(Qt.AlignCenter)
        self.status_label.setStyleSheet(_status_style(GREY))
        layout.addWidget(self.status_label)

        return panel

    def connect_window(self):
        """Conecta à janela do jogo pelo título"""
        if self.is_tracing:
            return

        title = self.txt_window_title.text().strip()
        self.screen_capture.cleanup()
        self.connected = self.screen_capture.initialize(title or None)

        if self.connected:
            rect = self.screen_capture.get_window_rect()
            self.lbl_window_status.setText(f"✓ {self.screen_capture.name} [{rect.width}x{rect.height}]")
            self.lbl_window_status.setStyleSheet(_hint_style(GREEN))
            self.log(f"✓ Janela conectada: {self.screen_capture.name} | {rect}")
        else:
            self.lbl_window_status.setText("✗ Janela não encontrada")
            self.lbl_window_status.setStyleSheet(_hint_style(RED))
            self.log(f"✗ Janela '{title}' não encontrada", error=True)

        self.btn_start.setEnabled(self.connected)

    def on_parameter_changed(self, **changes):
        """Publica o campo editado no painel"""
        self.tank = self.channel.update(**changes)

    def on_tank_updated(self, tank: Tank):
        """Reflete no painel os parâmetros recebidos pelo loop"""
        self.tank = tank
        widgets = (self.spin_angle, self.spin_power, self.spin_wind, self.cmb_direction)
        for widget in widgets:
            widget.blockSignals(True)
        self.spin_angle.setValue(tank.angle)
        self.spin_power.setValue(tank.power)
        self.spin_wind.setValue(tank.wind)
        self.cmb_direction.setCurrentIndex(0 if tank.direction == Direction.RIGHT else 1)
        for widget in widgets:
            widget.blockSignals(False)
        self.log(f"⚙ {tank}")

    def start_tracing(self):
        """Inicia o loop em tempo real"""
        if self.is_tracing or not self.connected:
            return

        self.is_tracing = True
        self.btn_start.setEnabled(False)
        self.btn_stop.setEnabled(True)
        self.btn_connect.setEnabled(False)
        self.status_label.setText("Status: 🔴 Rastreando...")
        self.status_label.setStyleSheet(_status_style(GREEN))

        self.log("🔍 Rastreamento iniciado")

        if config.OVERLAY_BACKEND != "gdi":
            rect = self.screen_capture.get_window_rect()
            self.overlay.place(rect.x, rect.y, rect.width, rect.height)
            self.overlay.show()

        self.tracer_thread = TracerThread(
            self.detector,
            self.screen_capture,
            self.channel,
            self.channel.last_published,
            self.chk_preview.isChecked()
        )
        self.tracer_thread.result_ready.connect(self.on_frame_result)
        self.tracer_thread.tank_updated.connect(self.on_tank_updated)
        self.tracer_thread.error_occurred.connect(self.on_frame_error)
        self.tracer_thread.debug_log.connect(self.on_debug_log)
        self.tracer_thread.start()

    def stop_tracing(self):
        """Para o loop"""
        if not self.is_tracing:
            return

        self.is_tracing = False

        if self.tracer_thread:
            self.tracer_thread.stop()
            self.tracer_thread.wait(2000)  # Aguarda até 2s
            if self.tracer_thread.isRunning():
                self.tracer_thread.terminate()
            self.tracer_thread = None

        self.overlay.clear()
        self.overlay.hide()

        self.btn_start.setEnabled(True)
        self.btn_stop.setEnabled(False)
        self.btn_connect.setEnabled(True)
        self.status_label.setText("Status: ⏸ Pausado")
        self.status_label.setStyleSheet(_status_style(ORANGE))

        self.log("⏸ Rastreamento pausado")

    def on_frame_result(self, result: DetectionResult, segments, rect, preview):
        """Callback para o resultado de cada quadro"""
        if preview is not None:
            self.display_image(preview)

        self.total_frames += 1
        if result.found:
            self.successful_frames += 1
            x, y = result.position
            self.lbl_tank_position.setText(
                f"Última posição: ({x}, {y}) | Tela: ({rect.x + x}, {rect.y + y})"
            )
            self.lbl_tank_position.setStyleSheet(_hint_style(GREEN))

        if config.OVERLAY_BACKEND != "gdi":
            try:
                self.overlay.place(rect.x, rect.y, rect.width, rect.height)
                self.overlay.draw_segments(segments)
            except Exception as e:
                self.log(f"✗ Erro ao desenhar trajetória: {e}", error=True)

        self.update_stats()

    def on_frame_error(self, error_msg: str):
        """Callback para erro no quadro"""
        self.log(error_msg, error=True)

    def on_debug_log(self, message: str):
        """Recebe logs detalhados da thread"""
        self.log(message)

    def on_fps_changed(self, value):
        """Atualiza FPS do loop"""
        config.LOOP_FPS = value
        config.LOOP_INTERVAL_MS = int(1000 / value)
        self.log(f"⚙ FPS atualizado para: {value}")

    def update_stats(self):
        self.lbl_total.setText(f"Quadros: {self.total_frames}")
        self.lbl_success.setText(f"Tanque encontrado: {self.successful_frames}")
        rate = 100 * self.successful_frames / self.total_frames if self.total_frames else 0.0
        self.lbl_rate.setText(f"Taxa: {rate:.1f}%")

    def reset_stats(self):
        """Reseta estatísticas"""
        self.total_frames = 0
        self.successful_frames = 0
        self.update_stats()
        self.log("🔄 Estatísticas resetadas")

    def display_image(self, image: np.ndarray):
        """Mostra a pré-visualização BGR, reduzida a PREVIEW_MAX_WIDTH"""
        h, w = image.shape[:2]
        if w > config.PREVIEW_MAX_WIDTH:
            h = int(h * config.PREVIEW_MAX_WIDTH / w)
            image = cv2.resize(image, (config.PREVIEW_MAX_WIDTH, h), interpolation=cv2.INTER_AREA)

        image = np.ascontiguousarray(image)
        qt_image = QImage(image.data, image.shape[1], h, image.strides[0], QImage.Format_BGR888)
        pixmap = QPixmap.fromImage(qt_image.copy())
        self.image_label.setPixmap(
            pixmap.scaled(self.image_label.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation)
        )

    def log(self, message: str, error: bool = False):
        """Adiciona mensagem ao log (as mais antigas saem pelo limite de blocos)"""
        color = "red" if error else "black"
        self.log_text.append(f'<span style="color: {color};">[{datetime.now():%H:%M:%S}] {message}</span>')

    def clear_log(self):
        """Limpa log"""
        self.log_text.clear()

    def closeEvent(self, event):
        """Cleanup ao fechar"""
        if self.is_tracing:
            self.stop_tracing()

        self.overlay.close()
        self.screen_capture.cleanup()
        event.accept()


def main():
    """Ponto de entrada para iniciar a interface PyQt."""
    app = QApplication.instance()
    created_app = False
    if app is None:
        app = QApplication(sys.argv)
        created_app = True

    tank = Tank()
    channel = TankChannel(tank)

    if getattr(config, 'ENABLE_CONSOLE_INPUT', False):
        ConsoleParameterReader(channel).start()

    window = TracerUI(channel, tank)
    window.show()

    # Apenas inicia o loop de eventos se formos responsáveis pelo QApplication
    if created_app:
        return app.exec_()
